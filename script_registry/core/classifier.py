"""Classification of trimmed lines into top-level declaration kinds."""

from enum import Enum
from typing import Optional


class DeclarationKind(Enum):
    ENUM = "enum"
    CLASS = "class"
    INTERFACE = "interface"
    FUNCTION = "function"
    TYPE = "type"
    CONSTANT = "constant"


# Tested in this order; the first matching prefix wins
DECLARATION_PREFIXES = (
    ("export enum ", DeclarationKind.ENUM),
    ("export class ", DeclarationKind.CLASS),
    ("export interface ", DeclarationKind.INTERFACE),
    ("export function ", DeclarationKind.FUNCTION),
    ("export type ", DeclarationKind.TYPE),
    ("export declare const ", DeclarationKind.CONSTANT),
)


def classify_line(line: str) -> Optional[DeclarationKind]:
    """Return the declaration kind a line starts, or None."""
    trimmed = line.strip()
    for prefix, kind in DECLARATION_PREFIXES:
        if trimmed.startswith(prefix):
            return kind
    return None
