"""Fixed camera-angle variations used by the edit-by-angle mode."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AngleSpec:
    """A named camera angle and the prompt text that requests it."""

    name: str
    prompt_suffix: str


ANGLES: tuple[AngleSpec, ...] = (
    AngleSpec(
        "Low Angle",
        "viewed from a low camera angle, looking up, dramatic perspective",
    ),
    AngleSpec(
        "High Angle",
        "viewed from a high camera angle, looking down, bird's eye view",
    ),
    AngleSpec("Side Profile", "viewed from the side profile, cinematic lighting"),
    AngleSpec(
        "Wide Shot",
        "wide angle shot, showing surrounding context, environmental view",
    ),
    AngleSpec(
        "Close Up",
        "extreme close up shot, highly detailed texture, macro photography style",
    ),
    AngleSpec(
        "Dutch Angle",
        "Dutch angle shot, tilted camera horizon, dynamic energy, unease",
    ),
    AngleSpec(
        "Over the Shoulder",
        "over-the-shoulder shot, narrative perspective, depth of field",
    ),
)


def build_angle_prompt(angle: AngleSpec, instruction: str | None) -> str:
    """Combine the user's optional instruction with an angle suffix."""
    if instruction:
        return f"{instruction}, {angle.prompt_suffix}"
    return f"Keep the subject but change camera to {angle.prompt_suffix}"
