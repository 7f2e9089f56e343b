from __future__ import annotations

import logging
from typing import Dict, Iterable

from ..script.model import Instruction, LabelInstruction

logger = logging.getLogger(__name__)


def build_label_index(instructions: Iterable[Instruction]) -> Dict[str, int]:
    """Map label id -> offset of the instruction right after the label.

    Single pass; a redefined label overwrites the earlier one (last wins).
    """
    labels: Dict[str, int] = {}
    for i, ins in enumerate(instructions):
        if not isinstance(ins, LabelInstruction) or not ins.id:
            continue
        if ins.id in labels:
            logger.warning("label %r redefined at %d (was %d)", ins.id, i, labels[ins.id] - 1)
        labels[ins.id] = i + 1
    return labels
