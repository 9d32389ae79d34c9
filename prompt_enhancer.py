"""Prompt enhancement for the image and video generators.

`enhance_image_prompt` and `enhance_video_prompt` are what the Replicate
routes send upstream. `enhance_prompt` is the richer style-driven variant
used to annotate placeholder image records.
"""
import re

DETAILED_IMAGE_PROMPT = 100
DETAILED_VIDEO_PROMPT = 60

STYLE_DESCRIPTORS = {
    'photorealistic': [
        'ultra detailed photograph', 'photorealistic', 'high resolution', '8k',
        'detailed lighting', 'professional photography', 'hyperrealistic', 'hdr',
    ],
    'artistic': [
        'artistic style', 'vibrant colors', 'stylized', 'creative composition',
        'digital art', 'illustration', 'expressive brushwork', 'artistic composition',
    ],
    'fantasy': [
        'magical', 'fantasy scene', 'ethereal light', 'dreamlike quality',
        'mystical atmosphere', 'surreal', 'enchanted', 'magical realism',
    ],
    'abstract': [
        'abstract composition', 'non-representational', 'dynamic shapes', 'bold colors',
        'geometric patterns', 'asymmetrical balance', 'modern art style', 'expressive forms',
    ],
    'vintage': [
        'vintage style', 'retro aesthetic', 'nostalgic colors', 'film grain',
        'classic composition', 'aged texture', 'historical feel', 'period-accurate details',
    ],
    'minimalist': [
        'minimalist design', 'clean lines', 'simple elements', 'negative space',
        'limited color palette', 'understated', 'elegant simplicity', 'essential forms only',
    ],
    'noir': [
        'film noir style', 'dramatic shadows', 'high contrast', 'moody atmosphere',
        'black and white', 'mysterious ambiance', 'dramatic lighting', 'cinematic composition',
    ],
    'cyberpunk': [
        'futuristic cyberpunk', 'neon lights', 'urban technology', 'dystopian elements',
        'high-tech low-life', 'digital interface', 'sci-fi cityscape', 'cybernetic aesthetics',
    ],
    'anime': [
        'anime style', 'distinctive character design', 'vibrant scene', 'cel shading',
        'expressive features', 'manga-inspired', 'dynamic poses', 'iconic anime aesthetic',
    ],
}

QUALITY_ENHANCERS = [
    'highly detailed', 'sharp focus', 'intricate', 'professional quality',
    'masterful composition', 'perfect balance', 'expert craftsmanship', 'stunning',
]
LIGHTING_ENHANCERS = [
    'dramatic lighting', 'soft illumination', 'golden hour light', 'volumetric lighting',
    'rim lighting', 'ambient occlusion', 'global illumination', 'beautiful shadows',
]
MOOD_ENHANCERS = [
    'atmospheric', 'evocative mood', 'emotional tone', 'expressive feeling',
    'captivating ambiance', 'compelling atmosphere', 'immersive environment', 'distinctive mood',
]

# (element, pattern that means the prompt already covers it)
ELEMENT_PATTERNS = [
    ('setting or background', re.compile(r'background|scene|setting|environment|landscape|location', re.I)),
    ('lighting conditions', re.compile(r'lighting|light|illuminated|shadows|dark|bright|sunlight|moonlight', re.I)),
    ('perspective or angle', re.compile(r'angle|perspective|view|shot|close-up|distance|aerial', re.I)),
    ('mood or atmosphere', re.compile(r'mood|atmosphere|feeling|tone|ambiance', re.I)),
    ('color palette', re.compile(r'colou?r|hue|saturation|vibrant|muted|monochrome|palette', re.I)),
    ('detail level', re.compile(r'detailed|intricate|texture|fine|resolution|quality', re.I)),
]

LEVELS = ('minimal', 'moderate', 'maximum')
STYLE_COUNTS = {'minimal': 2, 'moderate': 4, 'maximum': 6}
QUALITY_COUNTS = {'minimal': 0, 'moderate': 1, 'maximum': 3}

# keyword -> phrase, first match wins
VIDEO_STYLES = [('anime', 'anime style'), ('cartoon', 'cartoon style'),
                ('realistic', 'photorealistic'), ('cinematic', 'cinematic')]
VIDEO_SETTINGS = [('space', 'in outer space'), ('forest', 'in a lush forest'),
                  ('city', 'in a bustling city'), ('beach', 'on a beautiful beach')]
VIDEO_TIMES = [('night', 'at night'), ('sunset', 'during sunset'), ('morning', 'in the morning')]
VIDEO_MOTIONS = [('running', 'running'), ('flying', 'flying'),
                 ('swimming', 'swimming'), ('dancing', 'dancing')]
VIDEO_SUFFIX = "high quality, detailed, smooth motion, professional lighting, 4K resolution"


def detect_missing_elements(prompt):
    return [element for element, pattern in ELEMENT_PATTERNS if not pattern.search(prompt)]


def enhancement_level(strength):
    """Map a 0.0-1.0 strength onto minimal / moderate / maximum"""
    if strength < 0.3:
        return 'minimal'
    if strength < 0.7:
        return 'moderate'
    return 'maximum'


def enhance_prompt(prompt, style='photorealistic', level='moderate', preserve_original=True,
                   resolution=None, aspect_ratio=None):
    clean = prompt.strip()
    if not clean:
        return {'enhanced_prompt': prompt, 'original_prompt': prompt,
                'missing_elements': [], 'added_elements': []}

    missing = detect_missing_elements(clean)
    components = [clean] if preserve_original else []
    added = []

    descriptors = STYLE_DESCRIPTORS.get(style, STYLE_DESCRIPTORS['photorealistic'])
    components.append(', '.join(descriptors[:STYLE_COUNTS[level]]))
    added.append('style descriptors')

    quality = QUALITY_ENHANCERS[:QUALITY_COUNTS[level]]
    if quality:
        components.append(', '.join(quality))
        added.append('quality enhancers' if len(quality) > 1 else 'quality enhancer')

    index = LEVELS.index(level)
    if 'lighting conditions' in missing:
        components.append(LIGHTING_ENHANCERS[index])
        added.append('lighting')
    if 'mood or atmosphere' in missing:
        components.append(MOOD_ENHANCERS[index])
        added.append('mood')

    if resolution:
        components.append(f"{resolution} resolution")
        added.append('resolution')
    if aspect_ratio:
        components.append(f"{aspect_ratio} aspect ratio")
        added.append('aspect ratio')

    return {
        'enhanced_prompt': ', '.join(components),
        'original_prompt': prompt,
        'missing_elements': missing,
        'added_elements': added,
    }


def enhance_image_prompt(prompt, model):
    if len(prompt) > DETAILED_IMAGE_PROMPT:
        return prompt

    style = ''
    quality = 'high quality, detailed'
    if model == 'free-model-advanced':
        style = 'professional photography, masterful composition, perfect lighting'
        quality = 'ultra high definition, extremely detailed, 8k resolution, masterpiece'

    return f"{prompt}, {style}, {quality}".strip()


def _first_match(lowered, table):
    for keyword, phrase in table:
        if keyword in lowered:
            return phrase
    return ''


def enhance_video_prompt(prompt):
    if len(prompt) > DETAILED_VIDEO_PROMPT:
        return prompt

    lowered = prompt.lower()
    parts = [_first_match(lowered, VIDEO_STYLES) or 'cinematic', prompt]
    for table in (VIDEO_SETTINGS, VIDEO_TIMES, VIDEO_MOTIONS):
        phrase = _first_match(lowered, table)
        if phrase:
            parts.append(phrase)
    parts.append(VIDEO_SUFFIX)
    return ', '.join(parts)
