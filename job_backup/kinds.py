"""Item kind detection from the root element of a ``config.xml`` payload."""

import logging
from pathlib import Path
from typing import Optional
from xml.parsers import expat

from job_backup.constants import SNIFF_CHUNK_SIZE
from job_backup.models import ItemKind


logger = logging.getLogger(__name__)

LABEL_FOLDER = "Folder"
LABEL_PIPELINE = "Pipeline"
LABEL_FREESTYLE = "Freestyle"
LABEL_MAVEN = "Maven"
LABEL_MATRIX = "Multi-configuration"
LABEL_MULTIBRANCH_PIPELINE = "Multibranch Pipeline"
LABEL_ORG_FOLDER = "Organization Folder"
LABEL_JOB = "Job"

FOLDER_ELEMENT = "com.cloudbees.hudson.plugins.folder.Folder"

DEFAULT_MARKERS: dict[str, ItemKind] = {
    FOLDER_ELEMENT.lower(): ItemKind.CONTAINER,
    "project": ItemKind.LEAF,
    "flow-definition": ItemKind.LEAF,
    "maven2-moduleset": ItemKind.LEAF,
    "matrix-project": ItemKind.LEAF,
    "org.jenkinsci.plugins.workflow.multibranch.workflowmultibranchproject": ItemKind.LEAF,
    "jenkins.branch.organizationfolder": ItemKind.LEAF,
}

DEFAULT_SUFFIX_MARKERS: dict[str, ItemKind] = {
    ".workflowmultibranchproject": ItemKind.LEAF,
    ".organizationfolder": ItemKind.LEAF,
    ".folder": ItemKind.CONTAINER,
}

_SNIFF_LIMIT = 1024 * 1024


class Classifier:
    """Static marker table mapping root element names to item kinds.

    Exact markers win over suffix markers; anything unmatched is
    ``ItemKind.UNKNOWN`` and is treated as a non-container.
    """

    def __init__(
        self,
        markers: Optional[dict[str, ItemKind]] = None,
        suffix_markers: Optional[dict[str, ItemKind]] = None,
    ) -> None:
        self._markers = dict(DEFAULT_MARKERS if markers is None else markers)
        self._suffix_markers = dict(
            DEFAULT_SUFFIX_MARKERS if suffix_markers is None else suffix_markers
        )

    def register(self, marker: str, kind: ItemKind, suffix: bool = False) -> None:
        target = self._suffix_markers if suffix else self._markers
        target[marker.strip().lower()] = kind

    def classify(self, root_element: Optional[str]) -> ItemKind:
        normalized = (root_element or "").strip().lower()
        if not normalized:
            return ItemKind.UNKNOWN
        exact = self._markers.get(normalized)
        if exact is not None:
            return exact
        for suffix, kind in self._suffix_markers.items():
            if normalized.endswith(suffix):
                return kind
        return ItemKind.UNKNOWN

    def is_container(self, root_element: Optional[str]) -> bool:
        return self.classify(root_element) == ItemKind.CONTAINER


default_classifier = Classifier()


class _StopSniff(Exception):
    pass


class _RejectedPayload(Exception):
    pass


def _reject(*_args) -> None:
    raise _RejectedPayload("DTD or entity declarations are not allowed")


def _new_parser(found: list[str]) -> "expat.XMLParserType":
    parser = expat.ParserCreate()
    parser.SetParamEntityParsing(expat.XML_PARAM_ENTITY_PARSING_NEVER)
    parser.StartDoctypeDeclHandler = _reject
    parser.EntityDeclHandler = _reject
    parser.UnparsedEntityDeclHandler = _reject
    parser.ExternalEntityRefHandler = _reject

    def _start(name: str, _attrs) -> None:
        found.append(name.rsplit(":", 1)[-1])
        raise _StopSniff()

    parser.StartElementHandler = _start
    return parser


def sniff_root_bytes(data: bytes) -> str:
    found: list[str] = []
    parser = _new_parser(found)
    try:
        parser.Parse(data[:_SNIFF_LIMIT], True)
    except _StopSniff:
        return found[0]
    except (expat.ExpatError, _RejectedPayload) as exc:
        logger.debug("Cannot sniff root element: %s", exc)
    return ""


def sniff_root_element(path: Optional[Path]) -> str:
    """Return the root element name of an XML file, or ``""`` if unreadable.

    Only the prolog and first start tag are read. Documents declaring a
    DOCTYPE or entities are refused.
    """
    if path is None or not path.is_file():
        return ""

    found: list[str] = []
    parser = _new_parser(found)
    consumed = 0
    try:
        with path.open("rb") as handle:
            while consumed < _SNIFF_LIMIT:
                chunk = handle.read(SNIFF_CHUNK_SIZE)
                if not chunk:
                    parser.Parse(b"", True)
                    break
                consumed += len(chunk)
                parser.Parse(chunk, False)
    except _StopSniff:
        return found[0]
    except (OSError, expat.ExpatError, _RejectedPayload) as exc:
        logger.debug("Cannot sniff root element of %s: %s", path, exc)
    return ""


def simplify_root_element(root_element: str) -> str:
    if not root_element or not root_element.strip():
        return LABEL_JOB
    idx = root_element.rfind(".")
    if 0 <= idx < len(root_element) - 1:
        return root_element[idx + 1 :]
    return root_element


def type_label(root_element: Optional[str], is_container: bool) -> str:
    if is_container:
        return LABEL_FOLDER

    value = (root_element or "").strip()
    if not value:
        return LABEL_JOB

    simple = {
        "flow-definition": LABEL_PIPELINE,
        "project": LABEL_FREESTYLE,
        "maven2-moduleset": LABEL_MAVEN,
        "matrix-project": LABEL_MATRIX,
    }
    if value in simple:
        return simple[value]

    normalized = value.lower()
    if normalized.endswith("workflowmultibranchproject"):
        return LABEL_MULTIBRANCH_PIPELINE
    if normalized.endswith("organizationfolder"):
        return LABEL_ORG_FOLDER
    return simplify_root_element(value)
