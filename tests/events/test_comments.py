"""Tests for comment capture and comment emission."""

import io

import typedyaml as ty
from typedyaml.events import (
    CommentEvent,
    StreamStartEvent, StreamEndEvent,
    DocumentStartEvent, DocumentEndEvent,
    ScalarEvent, MappingStartEvent, MappingEndEvent,
)


class TestParseEvents:
    """Test the comment-aware event source."""

    def test_comment_events(self):
        """Comments become CommentEvents flagged inline or block."""
        events = ty.parse_events('a: 1  # inline\n# block\nb: 2\n')
        comments = [event for event in events if isinstance(event, CommentEvent)]
        assert [(c.value, c.inline) for c in comments] == [
            ('inline', True), ('block', False)]

    def test_comment_position(self):
        """A comment precedes the first event that follows it in the text."""
        events = ty.parse_events('a: 1\n# about b\nb: 2\n')
        index = next(i for i, event in enumerate(events)
                     if isinstance(event, CommentEvent))
        following = events[index + 1]
        assert isinstance(following, ScalarEvent)
        assert following.value == 'b'

    def test_file_object(self):
        """parse_events() reads file objects."""
        events = ty.parse_events(io.StringIO('# hello\na: 1\n'))
        assert isinstance(events[0], StreamStartEvent)
        assert any(isinstance(event, CommentEvent) and event.value == 'hello'
                   for event in events)

    def test_no_comments(self):
        """Without comments the plain PyYAML events are returned."""
        events = ty.parse_events('a: 1\n')
        assert not any(isinstance(event, CommentEvent) for event in events)
        assert isinstance(events[-1], StreamEndEvent)


class TestCommentPlacement:
    """Test which key a comment is attached to."""

    def test_block_comment(self):
        """A comment line belongs to the key after it."""
        _, store = ty.parse('# about a\na: 1\n')
        assert store.get_comment('a') == 'about a'

    def test_inline_comment(self):
        """An inline comment belongs to the key on its line."""
        _, store = ty.parse('a: 1  # one\nb: 2\n')
        assert store.get_comment('a') == 'one'
        assert store.get_comment('b') is None

    def test_multiple_lines(self):
        """Consecutive comment lines are joined with newlines."""
        _, store = ty.parse('# first\n# second\na: 1\n')
        assert store.get_comment('a') == 'first\nsecond'

    def test_inline_wins(self):
        """An inline comment replaces a block comment on the same key."""
        _, store = ty.parse('# block\na: 1  # inline\n')
        assert store.get_comment('a') == 'inline'

    def test_inline_after_key(self):
        """A comment after 'key:' belongs to that key."""
        _, store = ty.parse('outer:  # note\n  x: 1\n')
        assert store.get_comment('outer') == 'note'
        assert store.nested('outer').get_comment('x') is None

    def test_trailing_comment_of_nested_mapping(self):
        """A comment at the end of a nested mapping goes to the next parent key."""
        _, store = ty.parse('outer:\n  x: 1\n  # trailing\nnext: 2\n')
        assert store.get_comment('next') == 'trailing'
        assert store.nested('outer').get_comment('x') is None

    def test_sequence_items(self):
        """Comments on sequence scalars are keyed by index."""
        _, store = ty.parse('items:\n- one  # first\n# before two\n- two\n')
        items = store.nested('items')
        assert items.get_comment(0) == 'first'
        assert items.get_comment(1) == 'before two'

    def test_mapping_item(self):
        """A comment before a mapping item belongs to its first key."""
        _, store = ty.parse('people:\n# lead\n- name: a\n  age: 1\n')
        item = store.nested('people').nested(0)
        assert item.get_comment('name') == 'lead'
        assert store.nested('people').get_comment(0) is None

    def test_flow_comments_discarded(self):
        """Comments inside flow collections are not kept."""
        _, store = ty.parse('a: [1,  # gone\n  2]\nb: 3\n')
        assert store.nested('a').get_comment(0) is None
        assert store.nested('a').get_comment(1) is None
        assert store.get_comment('a') is None
        assert store.get_comment('b') is None

    def test_trailing_document_comment(self):
        """A comment after the last node is dropped."""
        value, store = ty.parse('a: 1\n# the end\n')
        assert store.get_comment('a') is None
        assert ty.to_yaml(value, store) == 'a: 1\n'


class TestCommentEmission:
    """Test writing comments."""

    def test_emit_events(self):
        """emit_events() writes a CommentEvent before the next key."""
        events = [
            StreamStartEvent(),
            DocumentStartEvent(explicit=False),
            MappingStartEvent(None, None, True, flow_style=False),
            CommentEvent('hello'),
            ScalarEvent(None, None, (True, True), 'a'),
            ScalarEvent(None, None, (True, True), '1'),
            MappingEndEvent(),
            DocumentEndEvent(explicit=False),
            StreamEndEvent(),
        ]
        assert ty.emit_events(events) == '# hello\na: 1\n'

    def test_multi_line_comment(self):
        """A multi-line comment is written as several lines."""
        store = ty.MetadataStore()
        store.set_comment('a', 'line one\n\nline three')
        assert ty.to_yaml({'a': 1}, store) == '# line one\n#\n# line three\na: 1\n'

    def test_flow_mapping_drops_comment(self):
        """Comments are not written inside a flow mapping."""
        store = ty.MetadataStore()
        store.set_document_mapping_style('flow')
        store.set_comment('a', 'lost')
        assert ty.to_yaml({'a': 1}, store) == '{a: 1}\n'

    def test_mapping_item_comment(self):
        """The first key's comment of an item mapping is written above '- '."""
        text = 'people:\n# lead\n- name: a\n  age: 1\n'
        assert ty.to_yaml(*ty.parse(text)) == text

    def test_inline_becomes_block(self):
        """Inline comments are written on their own line above the key."""
        value, store = ty.parse('a: 1  # one\nb: 2\n')
        assert ty.to_yaml(value, store) == '# one\na: 1\nb: 2\n'

    def test_round_trip(self):
        """Block comments survive parse and emit unchanged."""
        text = ('# Service settings\n'
                'name: api\n'
                '# Network\n'
                '# settings\n'
                'port: 8080\n'
                'limits:\n'
                '  cpu: 2\n'
                '  # in MiB\n'
                '  memory: 512\n'
                'hosts:\n'
                '# primary\n'
                '- a.example.com\n'
                '- b.example.com\n')
        assert ty.to_yaml(*ty.parse(text)) == text
