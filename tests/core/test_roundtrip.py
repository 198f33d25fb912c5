"""Round-trip tests: parse, map, re-emit, re-parse.

These tests verify that formatting choices survive a full cycle and that a
second cycle reproduces the first byte for byte.
"""

import datetime
import decimal
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import typedyaml as ty


class Person(ty.YamlBase):
    name: str
    age: int


class Company(ty.YamlBase):
    CompanyName: str
    founded: datetime.date
    ceo: Person
    employees: List[Person]
    tags: List[str]
    revenue: decimal.Decimal
    public: bool
    ticker: str


class Numbered(ty.YamlBase):
    number: int


class Link(ty.YamlBase):
    name: str
    next: Optional['Link'] = None


DOCUMENT = '''\
# Company profile
company-name: "Acme Corp"
founded: 1999-04-01
ceo: {name: Wile, age: 61}
employees:
# lead
- name: Road Runner
  age: 3  # fast
- name: 'Coyote'
  age: !!int "7"
tags: [tools, explosives]
revenue: 1200.50
public: true
ticker: !ticker ACME
'''

EMITTED = '''\
# Company profile
company-name: "Acme Corp"
founded: 1999-04-01
ceo: {name: Wile, age: 61}
employees:
# lead
- name: Road Runner
  # fast
  age: 3
- name: 'Coyote'
  age: !!int "7"
tags: [tools, explosives]
revenue: 1200.50
public: true
ticker: !ticker ACME
'''


def metadata_of(instance):
    """Flatten the recoverable metadata of a typed instance graph."""
    result = {}
    for descriptor in type(instance).yaml_properties():
        entry = instance.yaml_metadata.get(descriptor.name)
        if entry is not None and not entry.is_empty():
            result[descriptor.name] = entry
        value = getattr(instance, descriptor.name)
        if isinstance(value, ty.YamlBase):
            for key, nested in metadata_of(value).items():
                result['%s.%s' % (descriptor.name, key)] = nested
        elif isinstance(value, list):
            for index, item in enumerate(value):
                if isinstance(item, ty.YamlBase):
                    for key, nested in metadata_of(item).items():
                        result['%s[%d].%s' % (descriptor.name, index, key)] = nested
    return result


class TestIdempotence:
    """Test round-trip idempotence."""

    def test_first_emission(self):
        """An unmodified document is re-emitted with its formatting."""
        company = ty.from_yaml(DOCUMENT, Company)
        assert ty.to_yaml(company) == EMITTED

    def test_second_emission_is_identical(self):
        """A second round trip is byte-identical to the first."""
        first = ty.to_yaml(ty.from_yaml(DOCUMENT, Company))
        second = ty.to_yaml(ty.from_yaml(first, Company))
        assert second == first

    def test_values_survive(self):
        """Typed fields are equal after a round trip."""
        company = ty.from_yaml(DOCUMENT, Company)
        again = ty.from_yaml(ty.to_yaml(company), Company)
        assert again == company
        assert again.CompanyName == 'Acme Corp'
        assert again.founded == datetime.date(1999, 4, 1)
        assert again.revenue == decimal.Decimal('1200.50')
        assert again.employees[1].age == 7

    def test_metadata_survives(self):
        """Recoverable metadata is equal after a round trip."""
        company = ty.from_yaml(DOCUMENT, Company)
        again = ty.from_yaml(ty.to_yaml(company), Company)
        assert metadata_of(again) == metadata_of(company)
        assert again.get_comment('CompanyName') == 'Company profile'
        assert again.employees[0].get_comment('name') == 'lead'
        assert again.employees[0].get_comment('age') == 'fast'
        assert again.get_tag('ticker') == '!ticker'
        assert again.get_mapping_style('ceo') is ty.MappingStyle.FLOW

    def test_raw_tree(self):
        """Untyped trees round-trip with their metadata."""
        text = ('# header\n'
                'name: "quoted"\n'
                'count: !!int "3"\n'
                'items:\n'
                '  - one\n'
                '  - two  # second\n'
                'flow: {a: 1, b: [x, y]}\n')
        value, store = ty.parse(text)
        first = ty.to_yaml(value, store)
        assert first == ('# header\n'
                         'name: "quoted"\n'
                         'count: !!int "3"\n'
                         'items:\n'
                         '- one\n'
                         '# second\n'
                         '- two\n'
                         'flow: {a: 1, b: [x, y]}\n')
        assert ty.to_yaml(*ty.parse(first)) == first


class TestTagTypeCoupling:
    """Test that standard tags follow the value type."""

    def test_tagged_quoted_int(self):
        """!!int "42" maps to 42 and is re-emitted unchanged."""
        numbered = ty.from_yaml('number: !!int "42"\n', Numbered)
        assert numbered.number == 42
        assert numbered.get_tag('number') == 'tag:yaml.org,2002:int'
        assert ty.to_yaml(numbered) == 'number: !!int "42"\n'

    def test_changed_type_drops_tag(self):
        """A string value drops the int tag but keeps the quoting."""
        numbered = ty.from_yaml('number: !!int "42"\n', Numbered)
        numbered.number = 'forty-two'
        assert ty.to_yaml(numbered) == 'number: "forty-two"\n'

    def test_changed_value_keeps_tag(self):
        """Another int keeps the tag."""
        numbered = ty.from_yaml('number: !!int "42"\n', Numbered)
        numbered.number = 7
        assert ty.to_yaml(numbered) == 'number: !!int "7"\n'

    def test_plain_tagged_int(self):
        """A plain tagged scalar stays plain."""
        numbered = ty.from_yaml('number: !!int 42\n', Numbered)
        assert ty.to_yaml(numbered) == 'number: !!int 42\n'


class TestDuplicateKeyRoundTrip:
    """Test documents with explicitly mapped case variants."""

    def test_variants_round_trip(self):
        """Both variants are written back under their exact keys."""
        class Greeting(ty.YamlBase):
            lower: str = ty.prop(key='test')
            upper: str = ty.prop(key='Test')

        text = '{test: hello, Test: world}\n'
        greeting = ty.from_yaml(text, Greeting)
        assert ty.to_yaml(greeting) == text


class TestStylePrecedence:
    """Test that stored and assigned styles are applied."""

    class Boss(ty.YamlBase):
        name: str

    class Firm(ty.YamlBase):
        ceo: 'TestStylePrecedence.Boss'

    def test_flow_kept(self):
        """A flow mapping stays flow."""
        firm = ty.from_yaml('ceo: {name: x}\n', self.Firm)
        assert ty.to_yaml(firm) == 'ceo: {name: x}\n'

    def test_set_block(self):
        """Setting block style rewrites a flow mapping as block."""
        firm = ty.from_yaml('ceo: {name: x}\n', self.Firm)
        firm.set_mapping_style('ceo', ty.MappingStyle.BLOCK)
        assert ty.to_yaml(firm) == 'ceo:\n  name: x\n'

    def test_set_flow(self):
        """Setting flow style rewrites a block mapping as flow."""
        firm = ty.from_yaml('ceo:\n  name: x\n', self.Firm)
        firm.set_mapping_style('ceo', 'flow')
        assert ty.to_yaml(firm) == 'ceo: {name: x}\n'

    def test_override_wins(self):
        """A caller override beats stored styles."""
        firm = ty.from_yaml('ceo: {name: x}\n', self.Firm)
        assert ty.to_yaml(firm, mapping_style='block') == 'ceo:\n  name: x\n'


class TestPropertyNames:
    """Test key derivation on output."""

    def test_derived_and_explicit_keys(self):
        """MaxConnections becomes max-connections; HTTP stays verbatim."""
        class Service(ty.YamlBase):
            MaxConnections: int = 8
            HTTPUrl: str = ty.prop(key='HTTP', default='http://svc')

        text = ty.to_yaml(Service())
        assert text == 'max-connections: 8\nHTTP: http://svc\n'
        assert ty.from_yaml(text, Service).HTTPUrl == 'http://svc'


class TestDepthThreads:
    """Test that depth limits are independent per call."""

    def test_concurrent_emission(self):
        """Concurrent emissions with different limits do not interfere."""
        root = node = Link(name='l0')
        for index in range(1, 12):
            node.next = Link(name='l%d' % index)
            node = node.next
        limits = list(range(1, 9)) * 4
        expected = {limit: ty.to_yaml(root, max_depth=limit) for limit in limits}
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda d: (d, ty.to_yaml(root, max_depth=d)), limits))
        for limit, text in results:
            assert text == expected[limit]
        assert expected[1] == 'name: l0\nnext: {}\n'
