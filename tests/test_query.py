"""Tests for esclient.query — query DSL helpers."""
from __future__ import annotations

import pytest

from esclient.exceptions import ValidationError
from esclient.query import bool_, filtered, ids, match, match_all, not_, range_, term, terms


class TestQuery:
    def test_term(self):
        assert term('subject', 'hi') == {'term': {'subject': 'hi'}}

    def test_term_false_value(self):
        assert term('flag', False) == {'term': {'flag': False}}

    def test_terms(self):
        assert terms('tag', ('a', 'b')) == {'terms': {'tag': ['a', 'b']}}
        assert terms('tag', ['a'], execution='and') == {'terms': {'tag': ['a'], 'execution': 'and'}}

    def test_terms_bad_execution(self):
        with pytest.raises(ValidationError):
            terms('tag', ['a'], execution='xor')

    def test_match(self):
        assert match('body', 'quick fox') == {'match': {'body': 'quick fox'}}

    def test_match_all(self):
        assert match_all() == {'match_all': {}}

    def test_bool(self):
        assert bool_(must=[term('a', 1)], must_not=[ids(['x'])]) == {
            'bool': {'must': [{'term': {'a': 1}}], 'must_not': [{'ids': {'values': ['x']}}]},
        }

    def test_bool_requires_clause(self):
        with pytest.raises(ValidationError):
            bool_()

    def test_filtered(self):
        assert filtered(match_all(), term('a', 1)) == {
            'filtered': {'query': {'match_all': {}}, 'filter': {'term': {'a': 1}}},
        }

    def test_range(self):
        assert range_('age', gte=18, lt=65) == {'range': {'age': {'lt': 65, 'gte': 18}}}

    def test_range_requires_bound(self):
        with pytest.raises(ValidationError):
            range_('age')

    def test_ids_requires_values(self):
        with pytest.raises(ValidationError):
            ids([])

    def test_not(self):
        assert not_(term('a', 1)) == {'not': {'term': {'a': 1}}}

    @pytest.mark.parametrize('call', [
        lambda: term('', 1),
        lambda: term('a', None),
        lambda: match(None, 'x'),
        lambda: filtered({}, term('a', 1)),
    ])
    def test_missing_arguments(self, call):
        with pytest.raises(ValidationError):
            call()
