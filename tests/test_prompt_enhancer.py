import pytest

from prompt_enhancer import (
    detect_missing_elements, enhance_image_prompt, enhance_prompt, enhance_video_prompt, enhancement_level,
)


def test_long_prompts_pass_through():
    detailed = "x" * 101
    assert enhance_image_prompt(detailed, 'free-model-advanced') == detailed
    assert enhance_video_prompt("y" * 61) == "y" * 61


def test_video_prompt_picks_style_setting_time_and_motion():
    assert enhance_video_prompt("anime fox running in a forest at night") == (
        "anime style, anime fox running in a forest at night, in a lush forest, at night, running, "
        "high quality, detailed, smooth motion, professional lighting, 4K resolution"
    )


def test_video_prompt_defaults_to_cinematic():
    assert enhance_video_prompt("a lighthouse").startswith("cinematic, a lighthouse, high quality")


@pytest.mark.parametrize("strength, level", [(0.0, 'minimal'), (0.29, 'minimal'), (0.3, 'moderate'), (0.7, 'maximum')])
def test_enhancement_level(strength, level):
    assert enhancement_level(strength) == level


def test_missing_elements():
    assert detect_missing_elements("a detailed aerial shot of a vibrant city at sunlight, calm mood") == [
        'setting or background',
    ]


def test_enhance_prompt_moderate_adds_lighting_and_mood():
    result = enhance_prompt("a fox", style='noir', level='moderate')

    assert result['enhanced_prompt'] == (
        "a fox, film noir style, dramatic shadows, high contrast, moody atmosphere, "
        "highly detailed, soft illumination, evocative mood"
    )
    assert result['added_elements'] == ['style descriptors', 'quality enhancer', 'lighting', 'mood']


def test_enhance_prompt_unknown_style_and_blank_prompt():
    assert enhance_prompt("a fox", style='baroque', level='minimal')['enhanced_prompt'].startswith(
        "a fox, ultra detailed photograph, photorealistic"
    )
    assert enhance_prompt("   ")['enhanced_prompt'] == "   "
