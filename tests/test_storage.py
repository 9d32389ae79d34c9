from models import db, Subscription, User
import storage


def test_get_or_create_user_is_idempotent(app):
    first = storage.get_or_create_user("user_lazy")
    second = storage.get_or_create_user("user_lazy")

    assert first.id == second.id
    assert db.session.query(User).filter_by(subject_id="user_lazy").count() == 1


def test_get_or_create_user_fills_placeholders(app):
    user = storage.get_or_create_user("user_placeholder")

    assert user.email == storage.PLACEHOLDER_EMAIL
    assert user.first_name == "User"
    assert user.last_name == "Name"


def test_existing_user_profile_is_not_overwritten(app):
    storage.get_or_create_user("user_profile", email="ada@example.org", first_name="Ada")
    user = storage.get_or_create_user("user_profile")

    assert user.email == "ada@example.org"
    assert user.first_name == "Ada"


def test_find_user_returns_none_for_unknown_subject(app):
    assert storage.find_user("nobody") is None


def test_list_generations_filters_and_orders(app):
    user = storage.get_or_create_user("user_list")
    other = storage.get_or_create_user("user_other")
    older = storage.save_generation(user, 'video', "first", output={'url': 'https://v/1.mp4'})
    newer = storage.save_generation(user, 'video', "second", output={'url': 'https://v/2.mp4'})
    storage.save_generation(user, 'code', "not a video", output="print(1)")
    storage.save_generation(other, 'video', "someone else", output={'url': 'https://v/3.mp4'})

    videos = storage.list_generations(user.id, 'video')

    assert [video.id for video in videos] == [newer.id, older.id]


def test_latest_subscription_picks_most_recent(app):
    user = storage.get_or_create_user("user_subs")
    storage.create_subscription(user, 'basic', 9)
    latest = storage.create_subscription(user, 'pro', 29)

    assert storage.latest_subscription(user.id).id == latest.id


def test_cancel_subscription_overwrites_end_date(app):
    user = storage.get_or_create_user("user_cancel")
    subscription = storage.create_subscription(user, 'pro', 29)

    storage.cancel_subscription(subscription)
    first_end = subscription.end_date
    storage.cancel_subscription(subscription)

    refreshed = db.session.get(Subscription, subscription.id)
    assert refreshed.status == 'cancelled'
    assert refreshed.end_date is not None
    assert refreshed.end_date >= first_end


def test_invoice_numbers_are_unique(app):
    numbers = {storage.generate_invoice_number() for _ in range(50)}
    assert len(numbers) == 50
    assert all(number.startswith("INV-") for number in numbers)
