"""Unit tests for the Prompt Composer - instruction text and asset ordering."""

import pytest

from vton_studio.errors import InputValidationError
from vton_studio.models import (
    CUSTOM_BACKGROUND,
    AspectRatio,
    GarmentItem,
    GarmentKind,
    ImagePayload,
    Language,
    Operation,
    OrchestratedRequest,
    SceneConfig,
)
from vton_studio.prompting import (
    build_recolor_instruction,
    build_tryon_prompt,
    compose,
    resolve_extract_target,
)


def _image_garment(name: str, category: str, description: str | None = None) -> GarmentItem:
    return GarmentItem(
        id=name,
        kind=GarmentKind.IMAGE,
        image_data=ImagePayload(mime_type="image/png", data=name.encode()),
        category=category,
        custom_description=description,
    )


def _text_garment(name: str, category: str, description: str) -> GarmentItem:
    return GarmentItem(id=name, kind=GarmentKind.TEXT, category=category, custom_description=description)


class TestComposeTryOn:
    """Tests for the multi-garment try-on prompt."""

    def test_dress_and_beret_scenario(self, person_image, dress_item, beret_item):
        """Image dress plus text beret: both named, person + dress assets only."""
        request = OrchestratedRequest(
            Operation.COMPOSE, person_image, garments=(dress_item, beret_item), scene=SceneConfig()
        )
        prompt = compose(request)

        assert "Dress" in prompt.instruction_text
        assert "red beret" in prompt.instruction_text
        assert len(prompt.binary_assets) == 2
        assert prompt.binary_assets[0] == person_image
        assert prompt.binary_assets[1] == dress_item.image_data

    @pytest.mark.parametrize("kinds", [
        [],
        ["image"],
        ["text"],
        ["image", "text", "image"],
        ["text", "text", "image", "image", "text"],
    ])
    def test_asset_count_and_order(self, person_image, kinds):
        """Assets are the person then image garments, in input order."""
        garments = [
            _image_garment(f"g{i}", "Coat") if kind == "image" else _text_garment(f"g{i}", "Hat", f"hat {i}")
            for i, kind in enumerate(kinds)
        ]
        prompt = compose(OrchestratedRequest(Operation.COMPOSE, person_image, garments=tuple(garments)))

        expected = [person_image] + [g.image_data for g in garments if g.kind == GarmentKind.IMAGE]
        assert list(prompt.binary_assets) == expected
        assert len(prompt.binary_assets) == kinds.count("image") + 1

    def test_images_numbered_by_position(self):
        garments = [
            _image_garment("a", "Jacket/Blazer"),
            _text_garment("b", "Scarf", "silk scarf"),
            _image_garment("c", "Trousers/Pants"),
        ]
        text = build_tryon_prompt(garments, SceneConfig())

        assert "Image 2 is a 'Jacket/Blazer'." in text
        assert "Image 3 is a 'Trousers/Pants'." in text
        assert "Images 2-3" in text
        assert "silk scarf (Category: Scarf)" in text
        assert text.index("Image 2 is") < text.index("Image 3 is")

    def test_other_category_uses_description_as_label(self):
        text = build_tryon_prompt([_image_garment("a", "Other", "vintage brooch")], SceneConfig())

        assert "Image 2 is a 'vintage brooch'." in text
        assert "Images 2-" not in text

    def test_identity_preservation_comes_first(self):
        text = build_tryon_prompt([_image_garment("a", "Dress")], SceneConfig())
        lower = text.lower()

        assert "identity preservation" in lower
        assert lower.index("identity preservation") < lower.index("clothing instructions")
        for word in ("face", "pose", "skin tone", "proportions"):
            assert word in lower

    def test_layering_rules_present(self):
        text = build_tryon_prompt([_image_garment("a", "Belt")], SceneConfig()).lower()

        assert "outerwear" in text
        assert "belts go over" in text
        assert "head" in text

    def test_keep_background(self):
        text = build_tryon_prompt([_image_garment("a", "Dress")], SceneConfig(keep_background=True))

        assert "Keep the original background exactly as it is." in text
        assert "RELIGHT" not in text

    def test_new_environment_relights_subject(self):
        scene = SceneConfig(keep_background=False, background_prompt="Rainy Tokyo street at night")
        text = build_tryon_prompt([_image_garment("a", "Dress")], scene)

        assert "Rainy Tokyo street at night" in text
        assert "RELIGHT" in text
        assert "CAST SHADOWS" in text

    def test_original_background_value_keeps_scene(self):
        scene = SceneConfig(keep_background=False, background_prompt="original")
        text = build_tryon_prompt([_image_garment("a", "Dress")], scene)

        assert "Keep the original background" in text

    def test_aspect_ratio_carried(self, person_image, dress_item):
        scene = SceneConfig(aspect_ratio=AspectRatio.WIDESCREEN)
        prompt = compose(OrchestratedRequest(Operation.COMPOSE, person_image, garments=(dress_item,), scene=scene))

        assert prompt.aspect_ratio == AspectRatio.WIDESCREEN

    def test_deterministic(self, person_image, dress_item, beret_item):
        request = OrchestratedRequest(Operation.COMPOSE, person_image, garments=(dress_item, beret_item))

        assert compose(request) == compose(request)

    def test_unresolved_custom_background_rejected(self, person_image, dress_item):
        scene = SceneConfig(keep_background=False, background_prompt=CUSTOM_BACKGROUND)

        with pytest.raises(InputValidationError):
            compose(OrchestratedRequest(Operation.COMPOSE, person_image, garments=(dress_item,), scene=scene))


class TestComposeOtherOperations:
    """Tests for analyze / extract / edit prompts."""

    @pytest.mark.parametrize("language,expected", [
        (Language.ZH, "Traditional Chinese"),
        (Language.EN, "English"),
        (Language.JA, "Japanese"),
        (Language.KO, "Korean"),
    ])
    def test_analysis_language_directive(self, person_image, language, expected):
        prompt = compose(OrchestratedRequest(Operation.ANALYZE, person_image, language=language))

        assert expected in prompt.instruction_text
        assert "```json" in prompt.instruction_text
        assert '"recommendations"' in prompt.instruction_text
        assert prompt.binary_assets == (person_image,)
        assert prompt.aspect_ratio is None

    def test_extraction_prompt(self, person_image):
        prompt = compose(OrchestratedRequest(Operation.EXTRACT, person_image, directive="Skirt"))

        assert '"Skirt"' in prompt.instruction_text
        assert "#FFFFFF" in prompt.instruction_text
        assert "texture" in prompt.instruction_text
        assert prompt.binary_assets == (person_image,)

    def test_edit_prompt_preserves_identity(self, person_image):
        prompt = compose(OrchestratedRequest(Operation.EDIT, person_image, directive="Add sunglasses"))
        lower = prompt.instruction_text.lower()

        assert '"Add sunglasses"' in prompt.instruction_text
        assert "photorealistic" in lower
        assert "identity" in lower and "pose" in lower

    @pytest.mark.parametrize("operation", [Operation.EXTRACT, Operation.EDIT])
    def test_missing_directive_rejected(self, person_image, operation):
        with pytest.raises(InputValidationError):
            compose(OrchestratedRequest(operation, person_image, directive="   "))


class TestExtractTarget:
    """Tests for category → extraction target resolution."""

    def test_full_body(self):
        assert resolve_extract_target("Full-body") == "full outfit including top, bottom, shoes, and all accessories"

    def test_other_with_description(self):
        assert resolve_extract_target("Other", "  pearl earrings ") == "pearl earrings"

    def test_other_without_description(self):
        assert resolve_extract_target("Other", "") == "clothing item"
        assert resolve_extract_target("Other") == "clothing item"

    def test_literal_category(self):
        assert resolve_extract_target("Footwear", "ignored") == "Footwear"


def test_recolor_instruction():
    instruction = build_recolor_instruction(" jacket ", "emerald green")

    assert instruction.startswith("Change the color of the jacket to emerald green.")
    assert "hue/saturation" in instruction
