"""Instruction text assembly for brand visual generation.

A generation request is sent to the image model as a list of parts: every
reference image first, then exactly one consolidated text block.  The
images-first, text-last order is what the image model handles reliably;
interleaving labels between images is not supported.

Text Structure
--------------
::

    [REF_1] is the Main Subject. Maintain their likeness accurately.
    [REF_2] is Product: <name>. Maintain its look.
    ...

    TASK: Generate a high-quality photograph based on: "<prompt>"
    STYLE PREFERENCE: <most recent liked prompt>.
    REQUIREMENTS: Photorealistic, 8k resolution, cinematic lighting. ...

The reference lines are omitted for references that are not attached, and
the style line is omitted when nothing has been liked yet.  Only the most
recent liked prompt is used; older ones are dropped so the style hint stays
a single, clear signal.

Usage
-----
::

    assembled = assemble_generation_request(
        GenerationRequest(
            prompt="Sipping espresso in a Paris cafe",
            mode=GenerationMode.COMBINED,
            user=user_profile,
            products=[watch],
            liked_prompts=["Golden hour rooftop"],
        )
    )
    assembled.text        # consolidated instruction block
    assembled.references  # images to attach, in label order
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from brandstudio.core.models import EntityProfile, GenerationMode
from brandstudio.core.references import ReferenceAssignment, assign_reference_labels

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fixed instruction sections.
# ---------------------------------------------------------------------------

_TASK_TEMPLATE = 'TASK: Generate a high-quality photograph based on: "{prompt}"'

_STYLE_TEMPLATE = "STYLE PREFERENCE: {prompt}."

_REQUIREMENTS = (
    "REQUIREMENTS: Photorealistic, 8k resolution, cinematic lighting. "
    "Seamlessly integrate the references provided."
)


@dataclass
class GenerationRequest:
    """Everything needed to build one generation call.

    Attributes:
        prompt: Free-text scene description, used verbatim.
        mode: Which profiles contribute reference images.
        user: The user profile, if any.
        products: Selected products in selection order.
        liked_prompts: Liked prompts, oldest first.
    """

    prompt: str
    mode: GenerationMode
    user: EntityProfile | None = None
    products: Sequence[EntityProfile] = field(default_factory=list)
    liked_prompts: Sequence[str] = field(default_factory=list)


@dataclass(frozen=True)
class AssembledRequest:
    """The parts of a generation call, before SDK conversion.

    Attributes:
        references: Images to attach, in label order.
        text: The single trailing instruction block.
    """

    references: list[ReferenceAssignment]
    text: str

    @property
    def image_payloads(self) -> list[str]:
        """Base64 payloads in attachment order."""
        return [ref.image for ref in self.references]

    @property
    def degraded(self) -> bool:
        """``True`` when no reference image is attached."""
        return not self.references


def style_preference(liked_prompts: Sequence[str]) -> str | None:
    """Return the most recent liked prompt, or ``None`` if there is none."""
    if not liked_prompts:
        return None
    return liked_prompts[-1]


def build_instruction_text(
    references: Sequence[ReferenceAssignment],
    prompt: str,
    liked_prompts: Sequence[str] = (),
) -> str:
    """Compile the consolidated instruction block.

    Args:
        references: Attached references, in label order.
        prompt: The user's free-text prompt.
        liked_prompts: Liked prompt history, oldest first.

    Returns:
        The instruction text with one line per reference, a blank line, then
        the task, optional style preference, and requirements lines.
    """
    text = "".join(f"{ref.instruction()}\n" for ref in references)

    text += "\n" + _TASK_TEMPLATE.format(prompt=prompt) + "\n"

    preferred = style_preference(liked_prompts)
    if preferred is not None:
        text += _STYLE_TEMPLATE.format(prompt=preferred) + "\n"

    text += _REQUIREMENTS
    return text


def assemble_generation_request(request: GenerationRequest) -> AssembledRequest:
    """Resolve references and build the instruction text for *request*.

    A request with no attachable references still goes out, but is logged
    as degraded.
    """
    references = assign_reference_labels(request.mode, request.user, request.products)
    text = build_instruction_text(references, request.prompt, request.liked_prompts)

    assembled = AssembledRequest(references=references, text=text)
    if assembled.degraded:
        logger.warning("Generating without reference images.")
    else:
        logger.debug(f"Assembled generation request with {len(references)} reference image(s)")
    return assembled
