"""Event source and event sink built on PyYAML.

PyYAML's Reader/Scanner/Parser turn text into structural events and its
Emitter turns events back into text. Both sides ignore comments, so this
module adds a CommentEvent:

- CommentScanner records every ``#`` comment while scanning.
- parse_events() merges the recorded comments into the event stream by
  source position.
- CommentEmitter accepts CommentEvents and writes them as ``# text`` lines
  in front of the block mapping key or block sequence item that follows.
"""

import io
import logging

from yaml.events import (
    Event,
    StreamStartEvent, StreamEndEvent,
    DocumentStartEvent, DocumentEndEvent,
    AliasEvent, ScalarEvent,
    SequenceStartEvent, SequenceEndEvent,
    MappingStartEvent, MappingEndEvent,
)
from yaml.reader import Reader
from yaml.scanner import Scanner
from yaml.parser import Parser
from yaml.emitter import Emitter

log = logging.getLogger(__name__)


class CommentEvent(Event):
    """A ``#`` comment.

    Attributes:
        value: Comment text without the leading ``#``, stripped
        inline: True when non-blank text precedes the comment on its line
    """

    def __init__(self, value, inline=False, start_mark=None, end_mark=None):
        self.value = value
        self.inline = inline
        self.start_mark = start_mark
        self.end_mark = end_mark

    def __repr__(self):
        return '%s(value=%r, inline=%r)' % (
            self.__class__.__name__, self.value, self.inline)


class CommentScanner(Scanner):
    """PyYAML scanner that keeps the comments it skips."""

    def __init__(self):
        Scanner.__init__(self)
        self.comments = []

    def scan_to_next_token(self):
        # Same loop as Scanner.scan_to_next_token, with comments recorded
        # instead of skipped.
        if self.index == 0 and self.peek() == '\uFEFF':
            self.forward()
        found = False
        while not found:
            while self.peek() == ' ':
                self.forward()
            if self.peek() == '#':
                self.scan_comment()
            if self.scan_line_break():
                if not self.flow_level:
                    self.allow_simple_key = True
            else:
                found = True

    def scan_comment(self):
        start_mark = self.get_mark()
        line_head = self.buffer[self.pointer - self.column:self.pointer]
        inline = bool(line_head.strip())
        self.forward()
        length = 0
        while self.peek(length) not in '\0\r\n\x85\u2028\u2029':
            length += 1
        value = self.prefix(length)
        self.forward(length)
        self.comments.append(
            CommentEvent(value.strip(), inline, start_mark, self.get_mark()))


class EventLoader(Reader, CommentScanner, Parser):
    """Reader + comment-aware scanner + parser; produces events only."""

    def __init__(self, stream):
        Reader.__init__(self, stream)
        CommentScanner.__init__(self)
        Parser.__init__(self)


def parse_events(stream):
    """Parse YAML text into a list of events with comments merged in.

    A CommentEvent is placed before the first structural event that starts
    after it in the source.

    Args:
        stream: YAML text (str, bytes or a readable file object)

    Returns:
        List of yaml.events.Event and CommentEvent instances

    Raises:
        yaml.scanner.ScannerError, yaml.parser.ParserError: on malformed input
    """
    if hasattr(stream, 'read'):
        stream = stream.read()
    loader = EventLoader(stream)
    events = []
    try:
        while loader.check_event():
            events.append(loader.get_event())
    finally:
        loader.dispose()
    comments = loader.comments
    if not comments:
        return events

    merged = []
    index = 0
    for event in events:
        while (index < len(comments) and
               comments[index].start_mark.index < event.start_mark.index):
            merged.append(comments[index])
            index += 1
        merged.append(event)
    if index < len(comments):
        # Comments after the stream end; keep them ahead of StreamEndEvent.
        merged[-1:-1] = comments[index:]
    return merged


class CommentEmitter(Emitter):
    """PyYAML emitter that understands CommentEvent.

    A CommentEvent is attached to the next node event. Comments on a block
    mapping key or block sequence item are written as ``# text`` lines right
    before it, one line per comment line. Comments reaching flow context are
    dropped since flow collections are written on one line.

    Args:
        indented_sequences: Indent block sequences nested in a mapping
            instead of PyYAML's default indentless layout
    """

    def __init__(self, stream, canonical=None, indent=None, width=None,
                 allow_unicode=None, line_break=None, indented_sequences=False):
        Emitter.__init__(self, stream, canonical=canonical, indent=indent,
                         width=width, allow_unicode=allow_unicode,
                         line_break=line_break)
        self.indented_sequences = indented_sequences
        self.pending_comments = []

    def emit(self, event):
        if isinstance(event, CommentEvent):
            self.pending_comments.append(event.value)
            return
        if self.pending_comments:
            event.comments = self.pending_comments
            self.pending_comments = []
        Emitter.emit(self, event)

    def write_comments(self, comments):
        for text in comments:
            for line in text.split('\n'):
                self.write_indent()
                data = '# ' + line if line else '#'
                self.column += len(data)
                self.whitespace = False
                self.indention = False
                if self.encoding:
                    data = data.encode(self.encoding)
                self.stream.write(data)

    def take_comments(self, event):
        comments = getattr(event, 'comments', None)
        if comments:
            event.comments = None
        return comments

    def drop_comments(self, event):
        comments = self.take_comments(event)
        if comments:
            log.debug("dropping comments in flow context: %r", comments)

    # Block context.

    def expect_block_sequence(self):
        if self.indented_sequences:
            self.increase_indent(flow=False, indentless=False)
            self.state = self.expect_first_block_sequence_item
        else:
            Emitter.expect_block_sequence(self)

    def expect_block_sequence_item(self, first=False):
        if first or not isinstance(self.event, SequenceEndEvent):
            comments = self.take_comments(self.event) or []
            if (isinstance(self.event, MappingStartEvent) and self.events
                    and not self.is_flow_mapping()):
                # A comment on the first key of an item mapping goes above
                # the "- " indicator.
                comments = comments + (self.take_comments(self.events[0]) or [])
            if comments:
                self.write_comments(comments)
        Emitter.expect_block_sequence_item(self, first)

    def expect_block_mapping_key(self, first=False):
        if first or not isinstance(self.event, MappingEndEvent):
            comments = self.take_comments(self.event)
            if comments:
                self.write_comments(comments)
        Emitter.expect_block_mapping_key(self, first)

    def is_flow_mapping(self):
        return bool(self.flow_level or self.canonical or self.event.flow_style
                    or self.check_empty_mapping())

    # Flow context.

    def expect_flow_sequence_item(self):
        self.drop_comments(self.event)
        Emitter.expect_flow_sequence_item(self)

    def expect_first_flow_sequence_item(self):
        self.drop_comments(self.event)
        Emitter.expect_first_flow_sequence_item(self)

    def expect_flow_mapping_key(self):
        self.drop_comments(self.event)
        Emitter.expect_flow_mapping_key(self)

    def expect_first_flow_mapping_key(self):
        self.drop_comments(self.event)
        Emitter.expect_first_flow_mapping_key(self)

    # Scalars.

    def choose_scalar_style(self):
        # Emitter only writes plain scalars whose tag is implied. A scalar
        # with an explicit tag and no requested style stays plain here so
        # that "!!int 42" is not rewritten as "!!int '42'".
        if self.analysis is None:
            self.analysis = self.analyze_scalar(self.event.value)
        if (self.event.tag is not None and not self.event.style
                and not self.event.implicit[0] and not self.canonical
                and not (self.simple_key_context and
                         (self.analysis.empty or self.analysis.multiline))
                and (self.flow_level and self.analysis.allow_flow_plain
                     or (not self.flow_level and self.analysis.allow_block_plain))):
            return ''
        return Emitter.choose_scalar_style(self)


def emit_events(events, stream=None, Emitter=CommentEmitter, canonical=None,
                indent=None, width=None, allow_unicode=None, line_break=None,
                indented_sequences=False):
    """Emit YAML events (CommentEvents included) to a stream.

    Mirrors yaml.emit(). Returns the produced string if stream is None.
    """
    getvalue = None
    if stream is None:
        stream = io.StringIO()
        getvalue = stream.getvalue
    emitter = Emitter(stream, canonical=canonical, indent=indent, width=width,
                      allow_unicode=allow_unicode, line_break=line_break,
                      indented_sequences=indented_sequences)
    try:
        for event in events:
            emitter.emit(event)
    finally:
        emitter.dispose()
    if getvalue:
        return getvalue()


__all__ = [
    'Event',
    'CommentEvent',
    'StreamStartEvent', 'StreamEndEvent',
    'DocumentStartEvent', 'DocumentEndEvent',
    'AliasEvent', 'ScalarEvent',
    'SequenceStartEvent', 'SequenceEndEvent',
    'MappingStartEvent', 'MappingEndEvent',
    'CommentScanner',
    'EventLoader',
    'parse_events',
    'CommentEmitter',
    'emit_events',
]
