"""
Audit listeners that render violations.

``DefaultLogger`` writes the plain text format::

    [ERROR] /path/Foo.java:3:14: Name 'foo' must match pattern '^[A-Z]'. [TypeName]

``XMLLogger`` writes a checkstyle compatible XML report.
"""

import sys
import traceback
from enum import Enum
from typing import Dict, List, Optional, TextIO
from xml.sax.saxutils import escape

from . import __version__, messages
from .api import AuditListener
from .types import AuditEvent

_ENGINE_BUNDLE = "jcheck"
_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


class OutputStreamOptions(Enum):
    """Whether a listener closes its stream when the audit ends."""

    CLOSE = "close"
    NONE = "none"


def _is_standard_stream(stream: TextIO) -> bool:
    return stream in (sys.stdout, sys.stderr, sys.__stdout__, sys.__stderr__)


class StreamListener(AuditListener):
    """Owns one or two output streams and closes them at most once."""

    def __init__(self, streams: List[TextIO], options: List[OutputStreamOptions]):
        self._streams = list(zip(streams, options))
        self._closed = False

    def close(self) -> None:
        """Flush, then close the streams the listener owns. Standard streams are only flushed."""
        if self._closed:
            return
        self._closed = True
        seen = set()
        for stream, option in self._streams:
            if id(stream) in seen:
                continue
            seen.add(id(stream))
            stream.flush()
            if option is OutputStreamOptions.CLOSE and not _is_standard_stream(stream):
                stream.close()


class DefaultLogger(StreamListener):
    """Plain text listener.

    Args:
        output: stream for audit progress and violations
        output_option: whether ``output`` is closed when the audit ends
        error_output: stream for exceptions, ``output`` by default
        error_option: whether ``error_output`` is closed when the audit ends
    """

    def __init__(self, output: TextIO = sys.stdout,
                 output_option: OutputStreamOptions = OutputStreamOptions.CLOSE,
                 error_output: Optional[TextIO] = None,
                 error_option: Optional[OutputStreamOptions] = None):
        self.output = output
        self.error_output = error_output or output
        super().__init__([self.output, self.error_output],
                         [output_option, error_option or output_option])

    def audit_started(self, event: AuditEvent) -> None:
        self._write(self.output, messages.format_message(_ENGINE_BUNDLE, "DefaultLogger.auditStarted"))

    def add_error(self, event: AuditEvent) -> None:
        self._write(self.output, format_event(event))

    def add_exception(self, event: AuditEvent, error: BaseException) -> None:
        self._write(self.error_output, messages.format_message(
            _ENGINE_BUNDLE, "DefaultLogger.addException", (event.file_name,)))
        self.error_output.write("".join(traceback.format_exception(type(error), error, error.__traceback__)))

    def audit_finished(self, event: AuditEvent) -> None:
        self._write(self.output, messages.format_message(_ENGINE_BUNDLE, "DefaultLogger.auditFinished"))
        self.close()

    @staticmethod
    def _write(stream: TextIO, line: str) -> None:
        stream.write(line + "\n")


def format_event(event: AuditEvent) -> str:
    """Render one violation event in the plain text format."""
    location = f"{event.file_name}:{event.line}"
    if event.column is not None:
        location += f":{event.column}"
    source = event.module_id or event.source_name
    return f"[{event.severity.label}] {location}: {event.message} [{source}]"


class XMLLogger(StreamListener):
    """XML report listener. Output for a file is buffered until the file finishes."""

    def __init__(self, output: TextIO = sys.stdout,
                 output_option: OutputStreamOptions = OutputStreamOptions.CLOSE):
        super().__init__([output], [output_option])
        self.output = output
        self._buffers: Dict[str, List[str]] = {}

    def audit_started(self, event: AuditEvent) -> None:
        self.output.write('<?xml version="1.0" encoding="UTF-8"?>\n')
        self.output.write(f'<checkstyle version="{__version__}">\n')

    def file_started(self, event: AuditEvent) -> None:
        self._buffers[event.file_name] = []

    def add_error(self, event: AuditEvent) -> None:
        column = f' column="{event.column}"' if event.column is not None else ""
        source = event.module_id or event.source_name
        self._buffers.setdefault(event.file_name, []).append(
            f'<error line="{event.line}"{column} severity="{event.severity.value}"'
            f' message="{escape_attribute(event.message)}" source="{escape_attribute(source)}"/>\n')

    def add_exception(self, event: AuditEvent, error: BaseException) -> None:
        trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self._buffers.setdefault(event.file_name, []).append(
            f"<exception>\n<![CDATA[\n{_cdata(trace)}]]>\n</exception>\n")

    def file_finished(self, event: AuditEvent) -> None:
        lines = self._buffers.pop(event.file_name, [])
        self.output.write(f'<file name="{escape_attribute(event.file_name)}">\n')
        for line in lines:
            self.output.write(line)
        self.output.write("</file>\n")

    def audit_finished(self, event: AuditEvent) -> None:
        self.output.write("</checkstyle>\n")
        self.close()


def escape_attribute(value: str) -> str:
    return escape(value or "", _XML_ENTITIES)


def _cdata(text: str) -> str:
    """Split ``]]>`` so ``text`` stays inside the CDATA section."""
    return text.replace("]]>", "]]]]><![CDATA[>")
