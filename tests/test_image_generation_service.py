"""Tests for the image generation orchestrator."""

import asyncio

import pytest

from angle_studio.domain.angles import ANGLES
from angle_studio.domain.errors import (
    AlreadyUpscaledError,
    AuthorizationError,
    AuthorizationRequiredError,
    BatchExhaustionError,
    CapabilityError,
    ValidationError,
)
from angle_studio.domain.images import (
    AspectRatio,
    BatchRequest,
    GeneratedArtifact,
    GenerationMode,
    QualityTier,
)
from angle_studio.services.authorization import AuthorizationState
from tests.conftest import ENTITLEMENT_ERROR, PNG_BYTES


def _edit_request(prompt: str | None = None) -> BatchRequest:
    return BatchRequest(
        mode=GenerationMode.EDIT_ANGLES,
        prompt=prompt,
        source_image=PNG_BYTES,
        aspect_ratio=AspectRatio.LANDSCAPE,
    )


def test_generate_requires_prompt_without_calling_service(
    image_service, image_client
) -> None:
    request = BatchRequest(mode=GenerationMode.GENERATE, prompt="   ")

    with pytest.raises(ValidationError):
        asyncio.run(image_service.submit(request, AuthorizationState()))

    assert image_client.generate_calls == []


def test_generate_returns_single_high_quality_artifact(
    image_service, image_client
) -> None:
    request = BatchRequest(
        mode=GenerationMode.GENERATE,
        prompt="a red fox in snow",
        aspect_ratio=AspectRatio.PORTRAIT,
        quality=QualityTier.HIGH,
    )

    artifacts = asyncio.run(image_service.submit(request, AuthorizationState()))

    assert len(artifacts) == 1
    artifact = artifacts[0]
    assert artifact.producing_model == "gemini-3-pro-image-preview"
    assert artifact.source_prompt == "a red fox in snow"
    assert artifact.payload == b"generated:a red fox in snow"
    assert artifact.media_type == "image/png"
    assert image_client.generate_calls == [
        {
            "model": "gemini-3-pro-image-preview",
            "prompt": "a red fox in snow",
            "quality": QualityTier.HIGH,
            "aspect_ratio": AspectRatio.PORTRAIT,
        }
    ]


def test_generate_blocked_when_unauthorized(image_service, image_client) -> None:
    request = BatchRequest(mode=GenerationMode.GENERATE, prompt="castle")

    with pytest.raises(AuthorizationRequiredError):
        asyncio.run(image_service.submit(request, AuthorizationState(authorized=False)))

    assert image_client.generate_calls == []


def test_generate_failure_passes_message_through(image_service, image_client) -> None:
    image_client.generate_error = "503 UNAVAILABLE. The model is overloaded."
    authorization = AuthorizationState()

    with pytest.raises(CapabilityError) as exc_info:
        asyncio.run(
            image_service.generate(
                "castle",
                quality=QualityTier.STANDARD,
                aspect_ratio=AspectRatio.SQUARE,
                authorization=authorization,
            )
        )

    assert not isinstance(exc_info.value, AuthorizationError)
    assert str(exc_info.value) == "503 UNAVAILABLE. The model is overloaded."
    assert authorization.authorized is True


def test_generate_entitlement_failure_revokes_authorization(
    image_service, image_client
) -> None:
    image_client.generate_error = ENTITLEMENT_ERROR
    authorization = AuthorizationState()

    with pytest.raises(AuthorizationError):
        asyncio.run(
            image_service.generate(
                "castle",
                quality=QualityTier.STANDARD,
                aspect_ratio=AspectRatio.SQUARE,
                authorization=authorization,
            )
        )

    assert authorization.authorized is False


def test_edit_requires_source_image(image_service, image_client) -> None:
    request = BatchRequest(mode=GenerationMode.EDIT_ANGLES, prompt="cyberpunk")

    with pytest.raises(ValidationError):
        asyncio.run(image_service.submit(request, AuthorizationState()))

    assert image_client.edit_calls == []


def test_edit_builds_default_prompts_for_each_angle(
    image_service, image_client
) -> None:
    artifacts = asyncio.run(
        image_service.submit(_edit_request(), AuthorizationState())
    )

    assert len(artifacts) == 7
    instructions = [call["instruction"] for call in image_client.edit_calls]
    assert sorted(instructions) == sorted(
        f"Keep the subject but change camera to {angle.prompt_suffix}"
        for angle in ANGLES
    )
    assert {call["model"] for call in image_client.edit_calls} == {
        "gemini-2.5-flash-image"
    }
    assert {call["aspect_ratio"] for call in image_client.edit_calls} == {
        AspectRatio.LANDSCAPE
    }
    assert artifacts[0].source_prompt == (
        "Low Angle: Keep the subject but change camera to "
        "viewed from a low camera angle, looking up, dramatic perspective"
    )


def test_edit_appends_angle_to_instruction(image_service) -> None:
    artifacts = asyncio.run(
        image_service.submit(_edit_request("Make it cyberpunk"), AuthorizationState())
    )

    assert artifacts[2].source_prompt == (
        "Side Profile: Make it cyberpunk, "
        "viewed from the side profile, cinematic lighting"
    )
    assert {artifact.producing_model for artifact in artifacts} == {
        "gemini-2.5-flash-image"
    }
    assert len({artifact.id for artifact in artifacts}) == 7


def test_edit_keeps_angle_order_regardless_of_completion(
    image_service, image_client
) -> None:
    image_client.edit_delays = {"low camera angle": 0.05, "high camera angle": 0.02}

    artifacts = asyncio.run(
        image_service.submit(_edit_request(), AuthorizationState())
    )

    names = [artifact.source_prompt.split(":", 1)[0] for artifact in artifacts]
    assert names == [angle.name for angle in ANGLES]


def test_edit_partial_failure_returns_successful_subset(
    image_service, image_client
) -> None:
    image_client.edit_failures = {
        "high camera angle": "500 INTERNAL",
        "Dutch angle": "429 RESOURCE_EXHAUSTED",
    }
    authorization = AuthorizationState()

    artifacts = asyncio.run(image_service.submit(_edit_request(), authorization))

    names = [artifact.source_prompt.split(":", 1)[0] for artifact in artifacts]
    assert names == [
        "Low Angle",
        "Side Profile",
        "Wide Shot",
        "Close Up",
        "Over the Shoulder",
    ]
    assert len(image_client.edit_calls) == 7
    assert authorization.authorized is True


def test_edit_partial_entitlement_failure_still_revokes(
    image_service, image_client
) -> None:
    image_client.edit_failures = {"Dutch angle": ENTITLEMENT_ERROR}
    authorization = AuthorizationState()

    artifacts = asyncio.run(image_service.submit(_edit_request(), authorization))

    assert len(artifacts) == 6
    assert authorization.authorized is False


def test_edit_all_failures_raise_first_message(image_service, image_client) -> None:
    image_client.edit_failures = {
        angle.prompt_suffix: f"failure {index}" for index, angle in enumerate(ANGLES)
    }
    authorization = AuthorizationState()

    with pytest.raises(BatchExhaustionError) as exc_info:
        asyncio.run(image_service.submit(_edit_request(), authorization))

    assert str(exc_info.value) == "failure 0"
    assert len(exc_info.value.failures) == 7
    assert authorization.authorized is True


def test_edit_all_failures_with_entitlement_error_raise_authorization(
    image_service, image_client
) -> None:
    image_client.edit_failures = {
        angle.prompt_suffix: "500 INTERNAL" for angle in ANGLES
    }
    image_client.edit_failures[ANGLES[4].prompt_suffix] = ENTITLEMENT_ERROR
    authorization = AuthorizationState()

    with pytest.raises(AuthorizationError) as exc_info:
        asyncio.run(image_service.submit(_edit_request(), authorization))

    assert str(exc_info.value) == ENTITLEMENT_ERROR
    assert authorization.authorized is False


def test_upscale_rejects_upscaled_artifact_before_calling(
    image_service, image_client
) -> None:
    artifact = GeneratedArtifact(
        payload=b"image",
        source_prompt="castle",
        producing_model="gemini-3-pro-image-preview (Upscaled)",
    )

    with pytest.raises(AlreadyUpscaledError):
        asyncio.run(image_service.upscale(artifact, AuthorizationState()))

    assert image_client.upscale_calls == []


def test_upscale_tags_new_artifact(image_service, image_client) -> None:
    artifact = GeneratedArtifact(
        payload=b"image",
        source_prompt="Close Up: castle",
        producing_model="gemini-2.5-flash-image",
    )

    upscaled = asyncio.run(image_service.upscale(artifact, AuthorizationState()))

    assert upscaled.id != artifact.id
    assert upscaled.is_upscaled
    assert upscaled.producing_model == "gemini-3-pro-image-preview (Upscaled)"
    assert upscaled.source_prompt == "Close Up: castle"
    assert upscaled.payload == b"upscaled:image"
    assert image_client.upscale_calls[0]["quality"] is QualityTier.ULTRA


def test_upscale_entitlement_failure_revokes(image_service, image_client) -> None:
    image_client.upscale_error = ENTITLEMENT_ERROR
    authorization = AuthorizationState()
    artifact = GeneratedArtifact(
        payload=b"image", source_prompt="castle", producing_model="model"
    )

    with pytest.raises(AuthorizationError):
        asyncio.run(image_service.upscale(artifact, authorization))

    assert authorization.authorized is False


def test_upscale_blocked_when_unauthorized(image_service, image_client) -> None:
    artifact = GeneratedArtifact(
        payload=b"image", source_prompt="castle", producing_model="model"
    )

    with pytest.raises(AuthorizationRequiredError):
        asyncio.run(
            image_service.upscale(artifact, AuthorizationState(authorized=False))
        )

    assert image_client.upscale_calls == []


def test_submit_accepts_plain_mode_string(image_service, image_client) -> None:
    request = BatchRequest(mode="GENERATE", prompt="castle", source_image=PNG_BYTES)

    artifacts = asyncio.run(image_service.submit(request, AuthorizationState()))

    assert len(artifacts) == 1
    assert len(image_client.generate_calls) == 1
    assert image_client.edit_calls == []


def test_submit_rejects_unknown_mode(image_service, image_client) -> None:
    request = BatchRequest(mode="PANORAMA", prompt="castle", source_image=PNG_BYTES)

    with pytest.raises(ValidationError, match="PANORAMA"):
        asyncio.run(image_service.submit(request, AuthorizationState()))

    assert image_client.generate_calls == []
    assert image_client.edit_calls == []
