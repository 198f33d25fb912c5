"""Metadata-aware serializer.

Walks a Value tree together with its MetadataStore and produces the event
stream for CommentEmitter. At each collection the layout is chosen in this
order: the caller's override, the stored style of the key, the stored
document style (root only), block.

Stored tags are written when they are custom tags or when they still
describe the value: a '!!int' tag is dropped once the value is a string.
"""

import logging

from .events import (
    CommentEvent,
    StreamStartEvent, StreamEndEvent,
    DocumentStartEvent, DocumentEndEvent,
    ScalarEvent,
    SequenceStartEvent, SequenceEndEvent,
    MappingStartEvent, MappingEndEvent,
    emit_events,
)
from .metadata import MappingStyle, SequenceStyle
from .nodes import NullValue, ValueVisitor
from .representer import ValueRepresenter
from .resolver import (
    MAP_TAG, SEQ_TAG, normalize_tag, is_standard_tag, runtime_tag,
    should_emit_tag, plain_implicit,
)

log = logging.getLogger(__name__)


class EmitOptions:
    """Options of the metadata-aware serializer.

    Attributes:
        omit_null: Skip null values in mappings (never in sequences)
        emit_tags: Tag scalars that have no stored tag with the standard
            tag of their runtime type
        mapping_style: MappingStyle forced on every mapping
        sequence_style: SequenceStyle forced on every sequence
        max_depth: Deepest collection written; deeper ones become empty
            flow collections. The root collection is depth 1
        indented_sequences: Indent block sequences inside mappings
        indent: Indentation width
        width: Preferred line width; None for no folding
        allow_unicode: Write non-ASCII characters unescaped
        explicit_start: Begin the document with '---'
    """

    def __init__(self, omit_null=False, emit_tags=False, mapping_style=None,
                 sequence_style=None, max_depth=100, indented_sequences=False,
                 indent=None, width=None, allow_unicode=True,
                 explicit_start=False):
        self.omit_null = omit_null
        self.emit_tags = emit_tags
        self.mapping_style = MappingStyle(mapping_style) if mapping_style is not None else None
        self.sequence_style = SequenceStyle(sequence_style) if sequence_style is not None else None
        self.max_depth = max_depth
        self.indented_sequences = indented_sequences
        self.indent = indent
        self.width = width
        self.allow_unicode = allow_unicode
        self.explicit_start = explicit_start


class NodeDispatch(ValueVisitor):
    """Routes one Value to the matching MetadataSerializer method."""

    def __init__(self, serializer, entry, store, depth, root):
        self.serializer = serializer
        self.entry = entry
        self.store = store
        self.depth = depth
        self.root = root

    def visit_null(self, value):
        return self.serializer.serialize_null(self.entry)

    def visit_scalar(self, value):
        return self.serializer.serialize_scalar(value, self.entry)

    def visit_mapping(self, value):
        return self.serializer.serialize_mapping(
            value, self.entry, self.store, self.depth, self.root)

    def visit_sequence(self, value):
        return self.serializer.serialize_sequence(
            value, self.entry, self.store, self.depth, self.root)


class MetadataSerializer:
    """Turns typed instances, Value trees or plain data into events."""

    def __init__(self, options=None):
        self.options = options if options is not None else EmitOptions()

    def serialize(self, data, metadata=None):
        """Return the event list for one document.

        Args:
            data: YamlBase instance, Value tree, or plain dict/list/scalar
            metadata: MetadataStore of the root; a typed instance defaults
                to its own store
        """
        representer = ValueRepresenter(self.options.max_depth)
        value, store = representer.represent(data, metadata)
        events = [StreamStartEvent(),
                  DocumentStartEvent(explicit=self.options.explicit_start)]
        events.extend(self.serialize_node(value, store.document_entry(), store, 1,
                                          root=True))
        events.append(DocumentEndEvent(explicit=False))
        events.append(StreamEndEvent())
        return events

    def serialize_node(self, value, entry, store, depth, root=False):
        return value.accept(NodeDispatch(self, entry, store, depth, root))

    # Styles and tags.

    def mapping_style(self, entry, store, root):
        if self.options.mapping_style is not None:
            return self.options.mapping_style
        if entry is not None and entry.mapping_style is not None:
            return entry.mapping_style
        if root and store is not None and store.document_mapping_style is not None:
            return store.document_mapping_style
        return MappingStyle.BLOCK

    def sequence_style(self, entry, store, root):
        if self.options.sequence_style is not None:
            return self.options.sequence_style
        if entry is not None and entry.sequence_style is not None:
            return entry.sequence_style
        if root and store is not None and store.document_sequence_style is not None:
            return store.document_sequence_style
        return SequenceStyle.BLOCK

    def collection_tag(self, entry, kind_tag):
        tag = normalize_tag(entry.tag) if entry is not None else None
        if tag is not None and is_standard_tag(tag) and tag != kind_tag:
            log.debug("dropping tag %r that does not match a %s", tag, kind_tag)
            return None
        return tag

    def scalar_tag(self, entry, value):
        tag = entry.tag if entry is not None else None
        if tag is not None:
            if should_emit_tag(tag, value):
                return normalize_tag(tag)
            log.debug("dropping tag %r that no longer matches %r", tag, value)
        if self.options.emit_tags:
            return runtime_tag(value)
        return None

    # Nodes.

    def serialize_null(self, entry):
        tag = self.scalar_tag(entry, None)
        return [ScalarEvent(None, tag, (tag is None, tag is None), 'null')]

    def serialize_scalar(self, value, entry):
        text = value.raw
        tag = self.scalar_tag(entry, value.value)
        style = entry.scalar_style if entry is not None else None
        if tag is not None:
            implicit = (False, False)
        else:
            implicit = (plain_implicit(text, value.value), True)
        return [ScalarEvent(None, tag, implicit, text,
                            style=style.style if style is not None else None)]

    def placeholder(self, start_event, end_event, depth):
        log.debug("collection at depth %d exceeds max_depth %d; writing it empty",
                  depth, self.options.max_depth)
        return [start_event, end_event]

    def serialize_mapping(self, value, entry, store, depth, root):
        if depth > self.options.max_depth:
            return self.placeholder(
                MappingStartEvent(None, None, True, flow_style=True),
                MappingEndEvent(), depth)
        flow = self.mapping_style(entry, store, root).flow_style
        tag = self.collection_tag(entry, MAP_TAG)
        events = [MappingStartEvent(None, tag, tag is None, flow_style=flow)]
        for key, item in value.pairs:
            if self.options.omit_null and isinstance(item, NullValue):
                continue
            item_entry = store.get(key) if store is not None else None
            if item_entry is not None and item_entry.comment is not None:
                if flow:
                    log.debug("not writing comment of %r inside a flow mapping", key)
                else:
                    events.append(CommentEvent(item_entry.comment))
            events.append(ScalarEvent(None, None, (True, True), key))
            child_store = store.peek_nested(key) if store is not None else None
            events.extend(self.serialize_node(item, item_entry, child_store, depth + 1))
        events.append(MappingEndEvent())
        return events

    def serialize_sequence(self, value, entry, store, depth, root):
        if depth > self.options.max_depth:
            return self.placeholder(
                SequenceStartEvent(None, None, True, flow_style=True),
                SequenceEndEvent(), depth)
        flow = self.sequence_style(entry, store, root).flow_style
        tag = self.collection_tag(entry, SEQ_TAG)
        events = [SequenceStartEvent(None, tag, tag is None, flow_style=flow)]
        for index, item in enumerate(value.items):
            item_entry = store.get(index) if store is not None else None
            if item_entry is not None and item_entry.comment is not None and not flow:
                events.append(CommentEvent(item_entry.comment))
            child_store = store.peek_nested(index) if store is not None else None
            events.extend(self.serialize_node(item, item_entry, child_store, depth + 1))
        events.append(SequenceEndEvent())
        return events


def serialize(data, metadata=None, options=None, **kwargs):
    """Event list for data; kwargs build EmitOptions when options is None."""
    if options is None:
        options = EmitOptions(**kwargs)
    return MetadataSerializer(options).serialize(data, metadata)


def emit(data, stream=None, metadata=None, options=None, **kwargs):
    """Write data as YAML; returns the text when stream is None."""
    if options is None:
        options = EmitOptions(**kwargs)
    events = MetadataSerializer(options).serialize(data, metadata)
    return emit_events(
        events, stream,
        indent=options.indent,
        width=options.width if options.width is not None else float('inf'),
        allow_unicode=options.allow_unicode,
        indented_sequences=options.indented_sequences)


__all__ = [
    'EmitOptions',
    'MetadataSerializer',
    'NodeDispatch',
    'serialize',
    'emit',
]
