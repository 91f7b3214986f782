"""
Reads the variables, validation blocks and outputs of a Terraform module.

``tfblueprint check`` uses this to compare a .tfvars file against what a
module (generated or hand-edited) actually declares. Parsing is done with
python-hcl2, which returns bare expressions as ``"${...}"`` strings and
every block as a list of single-key dicts.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

import hcl2

logger = logging.getLogger(__name__)


@dataclass
class TerraformVariable:
    """
    A ``variable`` block.

    Attributes:
        name: Variable name
        type: Type expression such as ``list(string)``
        default: Default value, None when the variable is required
        description: Description text
        sensitive: Whether the variable is marked sensitive
        validations: ``{"condition": ..., "error_message": ...}`` per validation block
    """
    name: str
    type: str = "string"
    default: Optional[Any] = None
    description: str = ""
    sensitive: bool = False
    validations: List[dict] = field(default_factory=list)

    def is_required(self) -> bool:
        return self.default is None

    def error_messages(self) -> List[str]:
        return [str(block.get("error_message", "")) for block in self.validations]

    def __repr__(self) -> str:
        return (
            f"TerraformVariable(name='{self.name}', type='{self.type}', "
            f"required={self.is_required()}, sensitive={self.sensitive}, "
            f"validations={len(self.validations)})"
        )


@dataclass
class TerraformOutput:
    """An ``output`` block; ``value`` is the expression text."""
    name: str
    value: Any = None
    description: str = ""
    sensitive: bool = False


def _expression(value: Any) -> Any:
    """Unwrap python-hcl2's ``${...}`` expression marker."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return value[2:-1]
    return value


def _blocks(document: dict, kind: str):
    """Yield (label, body) for every ``kind`` block of a parsed file."""
    for entry in document.get(kind, []) or []:
        for label, body in entry.items():
            yield label, body or {}


class TerraformParser:
    """
    Parser for the ``*.tf`` files of one module directory.

    Every file is parsed once; files that don't parse are logged, left out
    of the results and reported by validate_syntax().
    """

    def __init__(self, project_path: str):
        self.project_path = project_path
        self._documents: Optional[List[Tuple[str, Optional[dict], Optional[str]]]] = None

    def _parse_files(self) -> List[Tuple[str, Optional[dict], Optional[str]]]:
        """(path, parsed document or None, error or None) for each .tf file."""
        if self._documents is not None:
            return self._documents

        documents = []
        for path in sorted(Path(self.project_path).glob("*.tf")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    documents.append((str(path), hcl2.load(f), None))
            except Exception as e:
                logger.error(f"HCL parse error in {path}: {e}")
                documents.append((str(path), None, str(e)))

        if not documents:
            logger.warning(f"No .tf files found in {self.project_path}")
        else:
            logger.debug(f"Parsed {len(documents)} Terraform files in {self.project_path}")
        self._documents = documents
        return documents

    def _parsed(self) -> List[dict]:
        return [doc for _, doc, _ in self._parse_files() if doc]

    def parse_variables(self) -> List[TerraformVariable]:
        """Variables in file order, then declaration order."""
        variables = []
        for document in self._parsed():
            for name, body in _blocks(document, "variable"):
                variables.append(TerraformVariable(
                    name=name,
                    type=self._type_of(body.get("type", "string")),
                    default=body.get("default"),
                    description=body.get("description") or "",
                    sensitive=bool(body.get("sensitive", False)),
                    validations=[
                        {
                            "condition": _expression(block.get("condition", "")),
                            "error_message": block.get("error_message", ""),
                        }
                        for block in body.get("validation", []) or []
                    ],
                ))
        logger.info(f"Found {len(variables)} variables in {self.project_path}")
        return variables

    @staticmethod
    def _type_of(value: Any) -> str:
        if isinstance(value, list) and value:
            value = value[0]
        return str(_expression(value))

    def parse_outputs(self) -> List[TerraformOutput]:
        return [
            TerraformOutput(
                name=name,
                value=_expression(body.get("value")),
                description=body.get("description") or "",
                sensitive=bool(body.get("sensitive", False)),
            )
            for document in self._parsed()
            for name, body in _blocks(document, "output")
        ]

    def resource_types(self) -> List[str]:
        """Sorted resource types declared by the module, e.g. ``["aws_lb", "aws_vpc"]``."""
        types = set()
        for document in self._parsed():
            types.update(resource_type for resource_type, _ in _blocks(document, "resource"))
        return sorted(types)

    def validate_syntax(self) -> Tuple[bool, Optional[str]]:
        """
        Check that every .tf file parses.

        Returns:
            (valid, message naming the first broken file)
        """
        documents = self._parse_files()
        if not documents:
            return False, "No .tf files found in module"
        for path, _, error in documents:
            if error is not None:
                return False, f"Syntax error in {os.path.basename(path)}: {error}"
        return True, None
