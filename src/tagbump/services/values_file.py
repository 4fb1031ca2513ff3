"""Editing of the image tag in a Helm values file."""

import io
import os
from typing import Optional, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError
from ruamel.yaml.nodes import MappingNode, ScalarNode
from ruamel.yaml.scalarstring import DoubleQuotedScalarString, SingleQuotedScalarString

from tagbump.errors import ValuesFileError
from tagbump.errors_catalog import actionable_error

_NULL_SCALARS = {"", "~", "null", "Null", "NULL"}


class ValuesFileService:
    """Rewrites ``image.tag`` in place, leaving every other byte of the file alone.

    ruamel.yaml is used to locate the tag scalar; the new value is spliced
    into the original text at that span. Only when there is no scalar to
    replace (key missing, null, or a block scalar) is the document re-dumped.
    """

    def __init__(self, filesystem_service, logger):
        self.filesystem_service = filesystem_service
        self.logger = logger

    @staticmethod
    def _yaml() -> YAML:
        yaml = YAML(typ="rt")
        yaml.preserve_quotes = True
        yaml.width = 4096
        return yaml

    def read(self, path: str) -> str:
        if not os.path.isfile(path):
            raise ValuesFileError(actionable_error("values_file_not_found", path=path))

        try:
            with open(path, "r", encoding="utf-8", newline="") as file_obj:
                return file_obj.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise ValuesFileError(actionable_error("invalid_values_yaml", path=path, error=exc)) from exc

    @staticmethod
    def _lookup(mapping: MappingNode, key: str):
        found = None
        for key_node, value_node in mapping.value:
            if isinstance(key_node, ScalarNode) and key_node.value == key:
                found = value_node
        return found

    def locate_tag(self, path: str, text: str) -> Tuple[MappingNode, Optional[object]]:
        """Return the ``image`` mapping node and its ``tag`` value node, if any."""
        try:
            root = self._yaml().compose(text)
        except YAMLError as exc:
            raise ValuesFileError(actionable_error("invalid_values_yaml", path=path, error=exc)) from exc

        image = self._lookup(root, "image") if isinstance(root, MappingNode) else None
        if not isinstance(image, MappingNode):
            raise ValuesFileError(actionable_error("missing_image_section", path=path))
        return image, self._lookup(image, "tag")

    def render_scalar(self, tag: str, style: Optional[str]) -> str:
        """Render ``tag`` in the given quote style, quoting a plain value that would not read back as a string."""
        if style == '"':
            value = DoubleQuotedScalarString(tag)
        elif style == "'":
            value = SingleQuotedScalarString(tag)
        else:
            value = tag
        buffer = io.StringIO()
        self._yaml().dump({"tag": value}, buffer)
        return buffer.getvalue()[len("tag: ") :].rstrip("\n")

    def _redump(self, path: str, text: str, tag: str) -> str:
        try:
            document = self._yaml().load(text)
        except YAMLError as exc:
            raise ValuesFileError(actionable_error("invalid_values_yaml", path=path, error=exc)) from exc
        document["image"]["tag"] = tag
        buffer = io.StringIO()
        self._yaml().dump(document, buffer)
        return buffer.getvalue()

    def patch_image_tag(self, workdir: str, filename: str, tag: str) -> bool:
        """Set ``image.tag`` to ``tag``. Returns False when the file already holds that text."""
        path = os.path.join(workdir, filename)
        text = self.read(path)
        _, node = self.locate_tag(path, text)

        spliceable = (
            isinstance(node, ScalarNode)
            and node.style in (None, '"', "'")
            and not (node.style is None and node.value in _NULL_SCALARS)
        )

        if spliceable:
            current = node.value
            if current == tag:
                self.logger.warning("Tag already set, %s", tag)
                return False
            start, end = node.start_mark.index, node.end_mark.index
            content = text[:start] + self.render_scalar(tag, node.style) + text[end:]
        else:
            current = None
            content = self._redump(path, text, tag)

        try:
            self.filesystem_service.atomic_write_text(path, content)
        except OSError as exc:
            raise ValuesFileError(actionable_error("values_write_failed", path=path, error=exc)) from exc

        self.logger.info("Updated %s image.tag: %s -> %s", filename, current, tag)
        return True
