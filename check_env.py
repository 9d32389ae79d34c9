from config import REQUIRED_VARS, OPTIONAL_VARS, missing_env_vars


def main():
    print("🔍 Checking environment variables...\n")

    missing = missing_env_vars(REQUIRED_VARS)
    for var in REQUIRED_VARS:
        if var in missing:
            print(f"❌ MISSING: {var}")
        else:
            # Never echo the value itself
            print(f"✅ {var}: set")

    print("\n📋 Optional variables:")
    missing_optional = missing_env_vars(OPTIONAL_VARS)
    for var in OPTIONAL_VARS:
        if var in missing_optional:
            print(f"⚠️  {var}: not set")
        else:
            print(f"✅ {var}: set")

    if missing:
        print("\n❌ Some required variables are missing. Check your .env file!")
        return 1

    print("\n✅ All required environment variables are set!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
