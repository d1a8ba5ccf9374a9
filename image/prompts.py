"""Prompt enhancement: frame the user's prompt as professional artwork and add quality qualifiers."""
import random
from typing import Optional

CONTEXT_PHRASES = (
    "award-winning professional photograph,",
    "masterpiece digital artwork,",
    "high-end artistic render,",
    "cinematic film still,",
    "editorial magazine photography,",
    "fine art gallery piece,",
)

EDIT_CONTEXT_PHRASES = (
    "professional photo retouch:",
    "expert digital art edit:",
    "high-end editorial retouching:",
    "artistic reinterpretation of the reference image:",
    "studio-grade photo manipulation:",
)

QUALITY_QUALIFIERS = (
    ", highly detailed, professional lighting, 8k resolution, sharp focus",
    ", artstation trending, hyperrealistic, detailed textures",
    ", photorealistic, studio quality, masterful composition",
    ", intricate details, volumetric lighting, vivid colors",
    ", crisp focus, balanced composition, rich tonal range",
)

DEFAULT_NEGATIVE_PROMPT = "blurry, low quality, distorted, deformed, ugly, bad anatomy, watermark, signature, text"

COMPANION_PROMPT_TEMPLATE = "masterpiece photograph, {prompt}, highly detailed, professional lighting, 8k, sharp focus, beautiful"


def enhance_prompt(prompt: str, enhance: bool = True, is_edit: bool = False,
                   rng: Optional[random.Random] = None) -> str:
    """
    Wrap ``prompt`` in a randomly chosen context phrase and quality qualifier.

    Args:
        prompt: User prompt, kept verbatim inside the result.
        enhance: When False the prompt is returned unchanged.
        is_edit: Use the edit phrasing (a reference image is present).
        rng: Source of randomness; pass a seeded ``random.Random`` for
            reproducible output.
    """
    if not enhance:
        return prompt

    rng = rng or random
    contexts = EDIT_CONTEXT_PHRASES if is_edit else CONTEXT_PHRASES
    context = rng.choice(contexts)
    qualifier = rng.choice(QUALITY_QUALIFIERS)
    return f"{context} {prompt}{qualifier}"


def enhance_companion_prompt(prompt: str) -> str:
    return COMPANION_PROMPT_TEMPLATE.format(prompt=prompt)
