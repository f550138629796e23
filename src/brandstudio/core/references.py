"""Reference label assignment for multi-image prompts.

Each image attached to a generation request gets a positional label
(``[REF_1]``, ``[REF_2]``, ...) so the instruction text can tell the model
which image plays which role.  Assignment is a pure function of the mode,
the user profile, and the selected products, which keeps the labels and
the attached image parts in lockstep: a label exists exactly when an image
is attached.

Ordering::

    [REF_1]        user (USER_ONLY / COMBINED, when the user has an image)
    [REF_k..]      products in selection order (PRODUCT_ONLY / COMBINED),
                   skipping products without an image
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from brandstudio.core.images import strip_data_uri
from brandstudio.core.models import EntityProfile, GenerationMode


@dataclass(frozen=True)
class ReferenceAssignment:
    """One attached image and the label that binds it in the prompt."""

    index: int
    role: Literal["user", "product"]
    profile: EntityProfile
    image: str

    @property
    def label(self) -> str:
        return f"[REF_{self.index}]"

    def instruction(self) -> str:
        """Instruction line binding this reference to its role."""
        if self.role == "user":
            return f"{self.label} is the Main Subject. Maintain their likeness accurately."
        return f"{self.label} is Product: {self.profile.name}. Maintain its look."


def _attachable_image(profile: EntityProfile | None) -> str | None:
    # Only the first image is attached; an empty payload attaches nothing.
    if profile is None or profile.primary_image is None:
        return None
    payload = strip_data_uri(profile.primary_image)
    return payload or None


def assign_reference_labels(
    mode: GenerationMode,
    user: EntityProfile | None,
    products: Sequence[EntityProfile],
) -> list[ReferenceAssignment]:
    """Assign 1-based reference labels to the images a request will attach.

    Args:
        mode: Generation mode selecting which profiles contribute.
        user: The user profile, if one exists.
        products: Selected products, in selection order.

    Returns:
        Assignments in attachment order.  Indices are contiguous from 1.
    """
    assignments: list[ReferenceAssignment] = []

    if mode.includes_user:
        image = _attachable_image(user)
        if image is not None:
            assignments.append(ReferenceAssignment(1, "user", user, image))

    if mode.includes_products:
        for product in products:
            image = _attachable_image(product)
            if image is None:
                continue
            assignments.append(
                ReferenceAssignment(len(assignments) + 1, "product", product, image)
            )

    return assignments
