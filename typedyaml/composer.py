"""Document composer.

Converts the event stream of parse_events() into a Value tree and, in the
same pass, a MetadataStore tree mirroring it. Comments are placed as
follows:

- an inline comment belongs to the key (or sequence index) whose value
  precedes it on the same line;
- block comments belong to the key that follows them. Block comments left
  over when a mapping ends are carried up to the next key of the parent;
- a comment before a block mapping item of a sequence belongs to the first
  key of that mapping.

Comments inside flow collections are discarded.
"""

import logging

from .error import MarkedTypedYamlError, DuplicateKeyError, NestingDepthError
from .events import (
    parse_events, CommentEvent,
    StreamStartEvent, StreamEndEvent,
    DocumentStartEvent, DocumentEndEvent,
    AliasEvent, ScalarEvent,
    SequenceStartEvent, SequenceEndEvent,
    MappingStartEvent, MappingEndEvent,
)
from .metadata import MetadataStore, ScalarStyle, MappingStyle, SequenceStyle
from .nodes import NullValue, MappingValue, SequenceValue
from .resolver import parse_scalar

log = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 1000


class ComposerError(MarkedTypedYamlError):
    """Document shape the composer cannot represent."""
    pass


class DocumentComposer:
    """Builds (Value, MetadataStore) pairs from a list of events.

    One composer handles one parse call; depth and path are passed down
    through every recursive call.
    """

    def __init__(self, events, allow_duplicate_keys=False,
                 max_depth=DEFAULT_MAX_DEPTH):
        self.events = events
        self.index = 0
        self.comments = []
        self.allow_duplicate_keys = allow_duplicate_keys
        self.max_depth = max_depth

    def peek_event(self):
        while (self.index < len(self.events) and
               isinstance(self.events[self.index], CommentEvent)):
            self.comments.append(self.events[self.index])
            self.index += 1
        if self.index < len(self.events):
            return self.events[self.index]
        return None

    def check_event(self, *choices):
        event = self.peek_event()
        if event is None:
            return False
        if not choices:
            return True
        return isinstance(event, choices)

    def get_event(self):
        event = self.peek_event()
        self.index += 1
        return event

    # Comment placement.

    def place_inline_comments(self, store, key):
        if key is None:
            return
        remaining = []
        for comment in self.comments:
            if comment.inline:
                store.set_comment(key, comment.value)
            else:
                remaining.append(comment)
        self.comments = remaining

    def take_comments(self):
        comments, self.comments = self.comments, []
        if not comments:
            return None
        return '\n'.join(comment.value for comment in comments)

    def discard_comments(self, where):
        if self.comments:
            log.debug("discarding %d comment(s) %s", len(self.comments), where)
            self.comments = []

    # Documents.

    def compose_single(self):
        """Compose the only document of the stream."""
        # Drop StreamStartEvent
        self.get_event()
        document = None
        if not self.check_event(StreamEndEvent):
            start_event = self.peek_event()
            document = self.compose_document()
            if not self.check_event(StreamEndEvent):
                event = self.get_event()
                raise ComposerError(
                    "expected a single document in the stream",
                    start_event.start_mark,
                    "but found another document", event.start_mark)
        # Drop StreamEndEvent
        self.get_event()
        if document is None:
            return NullValue(), MetadataStore()
        return document

    def compose_all(self):
        """Yield every document of the stream."""
        # Drop StreamStartEvent
        self.get_event()
        while not self.check_event(StreamEndEvent):
            yield self.compose_document()
        # Drop StreamEndEvent
        self.get_event()

    def compose_document(self):
        # Drop DocumentStartEvent
        self.get_event()
        store = MetadataStore()
        event = self.peek_event()
        if isinstance(event, MappingStartEvent):
            store.set_document_mapping_style(MappingStyle(bool(event.flow_style)))
        elif isinstance(event, SequenceStartEvent):
            store.set_document_sequence_style(SequenceStyle(bool(event.flow_style)))
        elif isinstance(event, ScalarEvent):
            store.set_document_scalar_style(ScalarStyle(event.style))
        if not isinstance(event, AliasEvent) and event.tag is not None:
            store.document_tag = event.tag
        value = self.compose_node(store, 1, '')
        self.discard_comments("at the end of the document")
        # Drop DocumentEndEvent
        self.get_event()
        return value, store

    # Nodes.

    def compose_node(self, store, depth, path):
        """Compose the next node.

        store is the MetadataStore of the node's own children; it is only
        used when the node is a collection.
        """
        if self.check_event(AliasEvent):
            event = self.get_event()
            log.debug("discarding alias *%s at %s; aliases are read as null",
                      event.anchor, path or '<root>')
            return NullValue()
        event = self.peek_event()
        if event.anchor is not None:
            log.debug("discarding anchor &%s at %s", event.anchor, path or '<root>')
        if isinstance(event, ScalarEvent):
            event = self.get_event()
            return parse_scalar(event.value, event.tag, event.style, event.start_mark)
        if depth > self.max_depth:
            raise NestingDepthError(self.max_depth, event.start_mark)
        if isinstance(event, SequenceStartEvent):
            return self.compose_sequence(store, depth, path)
        return self.compose_mapping(store, depth, path)

    def record_node(self, store, key, event):
        """Store tag and style of the node about to be composed at key."""
        if isinstance(event, AliasEvent):
            return
        if event.tag is not None:
            store.set_tag(key, event.tag)
        if isinstance(event, ScalarEvent):
            store.set_scalar_style(key, ScalarStyle(event.style))
        elif isinstance(event, MappingStartEvent):
            store.set_mapping_style(key, MappingStyle(bool(event.flow_style)))
        elif isinstance(event, SequenceStartEvent):
            store.set_sequence_style(key, SequenceStyle(bool(event.flow_style)))

    def child_store(self, store, key):
        if self.check_event(MappingStartEvent, SequenceStartEvent):
            return store.nested(key)
        return None

    def compose_mapping(self, store, depth, path):
        start_event = self.get_event()
        flow = bool(start_event.flow_style)
        if flow:
            saved, self.comments = self.comments, []
        pairs = []
        groups = {}
        last_key = None
        while True:
            self.peek_event()
            if not flow:
                self.place_inline_comments(store, last_key)
            if self.check_event(MappingEndEvent):
                break
            key_event = self.get_event()
            if not isinstance(key_event, ScalarEvent):
                raise ComposerError(
                    "while composing a mapping", start_event.start_mark,
                    "found a non-scalar key", key_event.start_mark)
            key = key_event.value
            self.check_duplicate_key(groups, key, path, key_event)
            if not flow:
                comment = self.take_comments()
                if comment is not None:
                    store.set_comment(key, comment)
            value_event = self.peek_event()
            if not flow:
                # "key:  # text" followed by a nested block collection
                self.place_inline_comments(store, key)
            self.record_node(store, key, value_event)
            value = self.compose_node(self.child_store(store, key), depth + 1,
                                      '%s.%s' % (path, key) if path else key)
            pairs.append((key, value))
            last_key = key
        if flow:
            self.discard_comments("inside a flow mapping")
            self.comments = saved
        # Drop MappingEndEvent
        self.get_event()
        return MappingValue(pairs)

    def compose_sequence(self, store, depth, path):
        start_event = self.get_event()
        flow = bool(start_event.flow_style)
        if flow:
            saved, self.comments = self.comments, []
        items = []
        index = 0
        while True:
            self.peek_event()
            if not flow and index:
                self.place_inline_comments(store, index - 1)
            if self.check_event(SequenceEndEvent):
                break
            event = self.peek_event()
            if not flow and not self.is_block_collection(event):
                comment = self.take_comments()
                if comment is not None:
                    store.set_comment(index, comment)
            self.record_node(store, index, event)
            items.append(self.compose_node(self.child_store(store, index),
                                           depth + 1, '%s[%d]' % (path, index)))
            index += 1
        if flow:
            self.discard_comments("inside a flow sequence")
            self.comments = saved
        # Drop SequenceEndEvent
        self.get_event()
        return SequenceValue(items)

    def is_block_collection(self, event):
        return (isinstance(event, (MappingStartEvent, SequenceStartEvent))
                and not event.flow_style)

    def check_duplicate_key(self, groups, key, path, key_event):
        group = groups.setdefault(key.lower(), [])
        if key not in group:
            group.append(key)
        if len(group) > 1 and not self.allow_duplicate_keys:
            raise DuplicateKeyError(group, path, problem_mark=key_event.start_mark)


def compose(stream, allow_duplicate_keys=False, max_depth=DEFAULT_MAX_DEPTH):
    """Parse a single YAML document into (Value, MetadataStore).

    Args:
        stream: YAML text or a readable file object
        allow_duplicate_keys: Accept keys that differ only by case
        max_depth: Maximum collection nesting (the root collection is 1)

    Returns:
        (Value, MetadataStore); (NullValue(), MetadataStore()) for empty input

    Raises:
        DuplicateKeyError: keys differing only by case, unless allowed
        ScalarFormatError: a tagged scalar that does not parse as its tag
        NestingDepthError: nesting deeper than max_depth
        ComposerError: more than one document, or a non-scalar key
    """
    composer = DocumentComposer(parse_events(stream), allow_duplicate_keys, max_depth)
    return composer.compose_single()


def compose_all(stream, allow_duplicate_keys=False, max_depth=DEFAULT_MAX_DEPTH):
    """Parse every YAML document of a stream, yielding (Value, MetadataStore)."""
    composer = DocumentComposer(parse_events(stream), allow_duplicate_keys, max_depth)
    return composer.compose_all()


__all__ = [
    'DEFAULT_MAX_DEPTH',
    'ComposerError',
    'DocumentComposer',
    'compose',
    'compose_all',
]
