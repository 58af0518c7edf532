"""Prompt Composer - builds provider instructions and the images that go with them.

Every builder here is a pure function: the same request always yields the
same text and the same asset order (person first, then image-backed
garments in the order the caller gave them).
"""

from ..errors import InputValidationError
from ..models import (
    FULL_BODY,
    OTHER,
    ComposedPrompt,
    GarmentItem,
    Language,
    Operation,
    OrchestratedRequest,
    SceneConfig,
)

LANGUAGE_NAMES = {
    Language.ZH: "Traditional Chinese (繁體中文)",
    Language.EN: "English",
    Language.JA: "Japanese (日本語)",
    Language.KO: "Korean (한국어)",
}

FULL_OUTFIT_TARGET = "full outfit including top, bottom, shoes, and all accessories"
GENERIC_TARGET = "clothing item"

ANALYSIS_PROMPT = """You are a top-tier celebrity fashion stylist and image consultant.
Analyze the outfit worn by the person in this image.

Write your critique in {language} using these sections:

1. **Style Analysis**: the overall vibe of the look.
2. **Color Palette**: how well the colors work together.
3. **Highlights**: what is working well.
4. **Pro Tips**: 3 specific, actionable tips.

IMPORTANT: End your response with a JSON block listing 3-5 specific items you recommend, based on your advice.
Format:
```json
{{
  "recommendations": ["Red silk scarf", "Wide-leg beige trousers", "Silver statement necklace"]
}}
```
Translate the recommended items into {language} so they are easy to understand.

Tone: encouraging, professional, chic, and honest.
Format: Markdown headers and bullet points."""

EXTRACTION_PROMPT = """You are a professional product photographer and editor.
Task: find the "{target}" worn by the person in this image.
Output: a high-quality, standalone product image of ONLY the requested item(s).

Requirements:
1. The background MUST be pure white (#FFFFFF).
2. Show the item(s) clearly.
   - A single item: flat lay or ghost mannequin style.
   - A full outfit or several accessories: a clean 'knolling' or flat lay arrangement where every item (shoes, bags, jewelry, hats) is visible.
3. Keep the original color, texture, material details, and patterns exactly as they appear in the source image.
4. Do not include the person, limbs, skin, or hair. Only the apparel and accessories."""

EDIT_PROMPT = """You are a professional photo retoucher.
Image 1 is the source image.

Task: edit the image according to this instruction: "{instruction}".

Constraints:
1. Keep the result photorealistic.
2. Only modify the parts of the image the instruction is about.
3. Keep the person's identity, face, pose, and body proportions exactly the same, along with every unaffected detail.
4. Do not significantly change the image resolution or aspect ratio."""

RECOLOR_INSTRUCTION = (
    "Change the color of the {target} to {color}. IMPORTANT: Keep the original material texture, "
    "shading, and lighting exact. Only change the hue/saturation."
)

VALIDATION_PROMPT = "Reply with OK."


def resolve_extract_target(category: str, custom_description: str | None = None) -> str:
    """Turn an extraction category into the phrase the provider should look for."""
    if category == FULL_BODY:
        return FULL_OUTFIT_TARGET
    if category == OTHER:
        return (custom_description or "").strip() or GENERIC_TARGET
    return category


def build_analysis_prompt(language: Language) -> str:
    return ANALYSIS_PROMPT.format(language=LANGUAGE_NAMES[language])


def build_extraction_prompt(target: str) -> str:
    return EXTRACTION_PROMPT.format(target=target)


def build_edit_prompt(instruction: str) -> str:
    return EDIT_PROMPT.format(instruction=instruction)


def build_recolor_instruction(target: str, color: str) -> str:
    return RECOLOR_INSTRUCTION.format(target=target.strip(), color=color.strip())


def build_tryon_prompt(garments: list[GarmentItem] | tuple[GarmentItem, ...], scene: SceneConfig) -> str:
    """Build the multi-garment try-on narrative.

    Image-backed garments are numbered from Image 2 in input order; text-only
    garments become generation instructions.
    """
    image_items = [item for item in garments if item.has_image]
    text_items = [item for item in garments if not item.has_image]

    lines = [
        "You are a professional virtual fashion editor for a high-end fashion magazine.",
        "",
        "HIGHEST PRIORITY - IDENTITY PRESERVATION:",
        "- The person must stay exactly the same: face, facial features, hair, pose, body shape and proportions, and skin tone.",
        "- The face MUST look identical to Image 1.",
        "",
        "Image 1 is the 'Person' (the model).",
    ]
    for index, item in enumerate(image_items, start=2):
        lines.append(f"Image {index} is a '{item.label}'.")

    lines += [
        "",
        "Task: edit the 'Person' image (Image 1) so the person wears ALL of the clothing items below.",
        "",
        "CLOTHING INSTRUCTIONS:",
    ]
    if image_items:
        last = len(image_items) + 1
        images_ref = "Image 2" if last == 2 else f"Images 2-{last}"
        lines.append(f"- Apply the garments shown in {images_ref} to the person. Match their texture and style exactly.")
    if text_items:
        lines.append("- GENERATE and apply these items described in text:")
        for item in text_items:
            lines.append(f"  * {item.description} (Category: {item.category})")

    lines += [
        "",
        "OUTFIT COMPOSITION:",
        "- Apply EVERY item listed above, whether it came as an image or as text.",
        "- Layer logically: outerwear (jackets, coats, blazers) goes over base layers such as shirts and knitwear; "
        "belts go over trousers, skirts, or dresses; hats and other headwear go on the head.",
        "- Where a new item overlaps the person's original clothes, replace the original clothes.",
        "",
        "PHOTOREALISM & TEXTURE:",
        "- The clothing must look like real fabric, not a flat sticker.",
        "- Fabric must fold and drape naturally around the body.",
        "",
    ]
    if scene.replaces_background:
        lines += [
            "ENVIRONMENT & LIGHTING:",
            f"- Place the person into this environment: \"{scene.background_prompt}\".",
            "- RELIGHT THE PERSON: lighting on skin and clothes MUST match the new environment.",
            "- CAST SHADOWS: the person must cast a realistic shadow in the new environment.",
        ]
    else:
        lines += [
            "ENVIRONMENT & LIGHTING:",
            "- Keep the original background exactly as it is.",
            "- Lighting on the new clothes must match the original scene.",
        ]
    lines += ["", "Return ONLY the generated image in high resolution."]
    return "\n".join(lines)


def _require_directive(request: OrchestratedRequest, what: str) -> str:
    directive = (request.directive or "").strip()
    if not directive:
        raise InputValidationError(f"Missing {what}")
    return directive


def compose(request: OrchestratedRequest) -> ComposedPrompt:
    """Build the instruction text and ordered binary assets for ``request``."""
    person = request.person_image
    operation = request.operation

    if operation == Operation.ANALYZE:
        return ComposedPrompt(build_analysis_prompt(request.language), (person,))

    if operation == Operation.EXTRACT:
        target = _require_directive(request, "extraction target")
        return ComposedPrompt(build_extraction_prompt(target), (person,))

    if operation == Operation.EDIT:
        instruction = _require_directive(request, "edit instruction")
        return ComposedPrompt(build_edit_prompt(instruction), (person,))

    if operation == Operation.COMPOSE:
        request.scene.validate_for_submission()
        assets = (person, *(item.image_data for item in request.garments if item.has_image))
        return ComposedPrompt(
            build_tryon_prompt(request.garments, request.scene),
            assets,
            aspect_ratio=request.scene.aspect_ratio,
        )

    raise ValueError(f"Unsupported operation: {operation}")
