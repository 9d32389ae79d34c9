PLACEHOLDER_HOST = "https://picsum.photos"
IMAGE_SIZE = 512
MAX_IMAGES = 4
DEFAULT_STYLE = 'photorealistic'


def prompt_seed(prompt):
    """Stable per-prompt seed so the same prompt always maps to the same images"""
    return sum(ord(char) for char in prompt)


def generate_images(prompt, amount=1):
    """Placeholder image provider: `amount` deterministic picsum.photos URLs"""
    base_seed = prompt_seed(prompt)
    return [
        {
            'url': f"{PLACEHOLDER_HOST}/seed/{base_seed + i}/{IMAGE_SIZE}/{IMAGE_SIZE}",
            'prompt': prompt,
        }
        for i in range(amount)
    ]
