"""
Document Reader (Import Stage 1)

Parses BPMN 2.0 XML text into a navigable lxml tree and rejects malformed or
structurally unusable input before any semantic work starts.

Tag matching is by local name, so documents using a ``bpmn:`` prefix, a
default namespace, or no namespace at all are read the same way.
"""

import logging
from typing import Dict, Iterator, List, Optional, Union

from lxml import etree

from bpmn_converter.core.exceptions import MalformedDocument, SchemaError
from bpmn_converter.models.bpmn_elements import decode_name

logger = logging.getLogger(__name__)


def local_name(element: etree._Element) -> Optional[str]:
    """Local tag name of an element, or None for comments and PIs."""
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def iter_children(element: etree._Element, name: Optional[str] = None) -> Iterator[etree._Element]:
    """Direct child elements, optionally filtered by local name."""
    for child in element:
        tag = local_name(child)
        if tag is None:
            continue
        if name is None or tag == name:
            yield child


def iter_descendants(element: etree._Element, name: str) -> Iterator[etree._Element]:
    """All descendants with the given local name, in document order."""
    return element.iter("{*}" + name)


def element_name(element: etree._Element) -> Optional[str]:
    """The decoded ``name`` attribute of an element."""
    return decode_name(element.get("name"))


class BPMNDocument:
    """A parsed BPMN document with the lookups the import stages share."""

    def __init__(self, root: etree._Element):
        self.root = root
        self.processes: List[etree._Element] = list(iter_descendants(root, "process"))
        self.collaborations: List[etree._Element] = list(iter_descendants(root, "collaboration"))
        self.participants: List[etree._Element] = list(iter_descendants(root, "participant"))

        self.process_by_id: Dict[str, etree._Element] = {}
        for process in self.processes:
            process_id = process.get("id")
            if process_id and process_id not in self.process_by_id:
                self.process_by_id[process_id] = process

        # id -> local tag name, used for kind-dependent layout defaults
        self.tag_by_id: Dict[str, str] = {}
        for element in root.iter():
            element_id = element.get("id") if isinstance(element.tag, str) else None
            if element_id and element_id not in self.tag_by_id:
                self.tag_by_id[element_id] = local_name(element)

    def shapes(self) -> Iterator[etree._Element]:
        return iter_descendants(self.root, "BPMNShape")

    def edges(self) -> Iterator[etree._Element]:
        return iter_descendants(self.root, "BPMNEdge")

    def message_flows(self) -> Iterator[etree._Element]:
        for collaboration in self.collaborations:
            yield from iter_descendants(collaboration, "messageFlow")


class DocumentReader:
    """Parses document text and checks the minimal BPMN structure."""

    def __init__(self):
        self._parser_options = dict(
            resolve_entities=False,
            no_network=True,
            remove_comments=True,
            remove_pis=True,
        )

    def read(self, text: Union[str, bytes]) -> BPMNDocument:
        """Parse document text.

        Args:
            text: BPMN XML as text, or bytes in their declared encoding

        Returns:
            Parsed BPMNDocument

        Raises:
            MalformedDocument: If the text is not well-formed XML
            SchemaError: If there is no definitions root or no usable process
        """
        options = dict(self._parser_options)
        if isinstance(text, str):
            # Text is already decoded; the declared encoding no longer applies
            data = text.encode("utf-8")
            options["encoding"] = "utf-8"
        else:
            data = text
        data = data.strip()
        if not data:
            raise MalformedDocument("Document is empty")

        parser = etree.XMLParser(**options)
        try:
            root = etree.fromstring(data, parser=parser)
        except etree.XMLSyntaxError as e:
            line, column = e.position if e.position else (None, None)
            raise MalformedDocument(e.msg or str(e), line=line, column=column) from e

        if local_name(root) != "definitions":
            raise SchemaError("missing definitions")

        document = BPMNDocument(root)
        self._check_processes(document)

        logger.debug(
            f"Read document: {len(document.processes)} processes, "
            f"{len(document.participants)} participants"
        )
        return document

    def _check_processes(self, document: BPMNDocument) -> None:
        """Require at least one process a participant (if any) can resolve to."""
        if not document.processes:
            raise SchemaError("No process element found")

        refs = [p.get("processRef") for p in document.participants]
        if refs and all(refs) and not any(ref in document.process_by_id for ref in refs):
            participant_ids = ", ".join(p.get("id", "?") for p in document.participants)
            raise SchemaError(
                "no resolvable process for any participant", element_id=participant_ids
            )


__all__ = [
    "BPMNDocument",
    "DocumentReader",
    "local_name",
    "iter_children",
    "iter_descendants",
    "element_name",
]
