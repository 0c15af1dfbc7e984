"""Tests for variable extraction and alias resolution."""
import asyncio

import pytest

from extractors.base import VariableType
from extractors.variable_extractor import (
    AliasResolutionError,
    AliasResolver,
    CollectionIndex,
    extract_variable,
)


def alias(target_id):
    return {'type': 'VARIABLE_ALIAS', 'id': target_id}


def run_extract(variable, collections, known=(), lookup=None, max_depth=10):
    index = CollectionIndex(collections)
    resolver = AliasResolver([variable, *known], lookup=lookup, max_depth=max_depth)
    return asyncio.run(extract_variable(variable, index, resolver))


class TestCollectionIndex:

    def test_mode_names(self, theme_collection):
        index = CollectionIndex([theme_collection])
        assert index.collection_name('VC:1') == 'Theme'
        assert index.mode_name('VC:1', '1:1') == ('Dark', False)
        assert index.mode_names('VC:1') == ['Light', 'Dark']

    def test_unknown_mode_is_synthesized(self, theme_collection):
        index = CollectionIndex([theme_collection])
        assert index.mode_name('VC:1', '9:9') == ('Mode 9:9', True)

    def test_unknown_collection(self):
        index = CollectionIndex([])
        assert index.collection_name('VC:404') == 'Unknown'
        assert index.mode_name('VC:404', '1:0') == ('Mode 1:0', True)


class TestTypeCoercion:
    """Verify values are cleaned according to resolvedType."""

    def test_color_modes(self, background_variable, theme_collection):
        record = run_extract(background_variable, [theme_collection])
        data = record.to_dict()
        assert data['type'] == 'color'
        assert data['token'] == 'colorbackground'
        assert data['collection'] == 'Theme'
        assert data['value'] == '#ffffff'
        assert data['values'] == {'Light': '#ffffff', 'Dark': '#000000'}
        assert data['scopes'] == ['FRAME_FILL']
        assert data['hiddenFromPublishing'] is False

    def test_translucent_color_is_rgba(self, background_variable, theme_collection):
        background_variable['valuesByMode']['1:0'] = {'r': 0, 'g': 0, 'b': 0, 'a': 0.4}
        record = run_extract(background_variable, [theme_collection])
        assert record.value == 'rgba(0, 0, 0, 0.4)'

    def test_near_opaque_color_is_rgba(self, background_variable, theme_collection):
        background_variable['valuesByMode']['1:0'] = {'r': 1, 'g': 0, 'b': 0, 'a': 0.996}
        record = run_extract(background_variable, [theme_collection])
        assert record.value == 'rgba(255, 0, 0, 1)'
        assert record.values['Dark'] == '#000000'

    def test_invalid_color_mode_skipped(self, background_variable, theme_collection):
        background_variable['valuesByMode']['1:0'] = {'r': 'x'}
        record = run_extract(background_variable, [theme_collection])
        assert record.values == {'Dark': '#000000'}
        assert record.value == '#000000'

    def test_float_accepts_numeric_strings(self, spacing_variable, spacing_collection):
        spacing_variable['valuesByMode']['2:0'] = ' 24 '
        assert run_extract(spacing_variable, [spacing_collection]).value == 24

    def test_float_rejects_text(self, spacing_variable, spacing_collection):
        spacing_variable['valuesByMode']['2:0'] = 'large'
        assert run_extract(spacing_variable, [spacing_collection]) is None

    def test_float_rejects_booleans(self, spacing_variable, spacing_collection):
        spacing_variable['valuesByMode']['2:0'] = True
        assert run_extract(spacing_variable, [spacing_collection]) is None

    def test_string_rejects_empty(self, spacing_collection):
        variable = {'id': 'V:9', 'name': 'label', 'variableCollectionId': 'VC:2',
                    'resolvedType': 'STRING', 'valuesByMode': {'2:0': ''}}
        assert run_extract(variable, [spacing_collection]) is None

    def test_boolean_false_is_kept(self, spacing_collection):
        variable = {'id': 'V:9', 'name': 'flag', 'variableCollectionId': 'VC:2',
                    'resolvedType': 'BOOLEAN', 'valuesByMode': {'2:0': False}}
        record = run_extract(variable, [spacing_collection])
        assert record.value is False
        assert record.type == VariableType.BOOLEAN

    def test_unsupported_type_dropped(self, spacing_collection):
        variable = {'id': 'V:9', 'name': 'vector', 'variableCollectionId': 'VC:2',
                    'resolvedType': 'VECTOR', 'valuesByMode': {'2:0': [1, 2]}}
        assert run_extract(variable, [spacing_collection]) is None


class TestModeNames:
    """Verify when the per-mode values map is attached."""

    def test_single_named_mode_keeps_values(self, spacing_variable, spacing_collection):
        record = run_extract(spacing_variable, [spacing_collection])
        assert record.values == {'Value': 16}

    def test_single_synthesized_mode_omits_values(self, spacing_variable):
        record = run_extract(spacing_variable, [])
        assert record.values is None
        assert record.collection == 'Unknown'
        assert 'values' not in record.to_dict()

    def test_first_mode_in_source_order_is_value(self, background_variable, theme_collection):
        background_variable['valuesByMode'] = {
            '1:1': {'r': 0, 'g': 0, 'b': 0},
            '1:0': {'r': 1, 'g': 1, 'b': 1},
        }
        record = run_extract(background_variable, [theme_collection])
        assert record.value == '#000000'
        assert list(record.values) == ['Dark', 'Light']


class TestAliases:
    """Verify alias chains, fallbacks and failures."""

    def test_alias_same_mode(self, background_variable, surface_alias_variable, theme_collection):
        record = run_extract(surface_alias_variable, [theme_collection], known=[background_variable])
        assert record.values == {'Light': '#ffffff', 'Dark': '#000000'}

    def test_alias_falls_back_to_first_target_mode(self, spacing_variable, theme_collection):
        variable = {'id': 'V:10', 'name': 'gap', 'variableCollectionId': 'VC:1', 'resolvedType': 'FLOAT',
                    'valuesByMode': {'1:0': alias('V:3')}}
        record = run_extract(variable, [theme_collection], known=[spacing_variable])
        assert record.value == 16

    def test_alias_chain(self, background_variable, theme_collection):
        middle = {'id': 'V:20', 'name': 'middle', 'variableCollectionId': 'VC:1', 'resolvedType': 'COLOR',
                  'valuesByMode': {'1:0': alias('V:1')}}
        top = {'id': 'V:21', 'name': 'top', 'variableCollectionId': 'VC:1', 'resolvedType': 'COLOR',
               'valuesByMode': {'1:0': alias('V:20')}}
        record = run_extract(top, [theme_collection], known=[middle, background_variable])
        assert record.value == '#ffffff'

    def test_alias_chain_beyond_depth_skipped(self, background_variable, theme_collection):
        middle = {'id': 'V:20', 'name': 'middle', 'variableCollectionId': 'VC:1', 'resolvedType': 'COLOR',
                  'valuesByMode': {'1:0': alias('V:1')}}
        top = {'id': 'V:21', 'name': 'top', 'variableCollectionId': 'VC:1', 'resolvedType': 'COLOR',
               'valuesByMode': {'1:0': alias('V:20')}}
        assert run_extract(top, [theme_collection], known=[middle, background_variable], max_depth=1) is None

    def test_alias_cycle_skipped(self, theme_collection):
        a = {'id': 'V:30', 'name': 'a', 'variableCollectionId': 'VC:1', 'resolvedType': 'COLOR',
             'valuesByMode': {'1:0': alias('V:31')}}
        b = {'id': 'V:31', 'name': 'b', 'variableCollectionId': 'VC:1', 'resolvedType': 'COLOR',
             'valuesByMode': {'1:0': alias('V:30')}}
        assert run_extract(a, [theme_collection], known=[b]) is None

    def test_self_alias_raises_cycle(self):
        resolver = AliasResolver([{'id': 'V:1', 'valuesByMode': {'m': alias('V:1')}}])
        with pytest.raises(AliasResolutionError, match='cycle'):
            asyncio.run(resolver.resolve(alias('V:1'), 'm'))

    def test_missing_target_yields_no_record(self, theme_collection):
        variable = {'id': 'V:40', 'name': 'dangling', 'variableCollectionId': 'VC:1', 'resolvedType': 'COLOR',
                    'valuesByMode': {'1:0': alias('V:404')}}
        assert run_extract(variable, [theme_collection]) is None

    def test_one_mode_resolves_other_does_not(self, background_variable, theme_collection):
        variable = {'id': 'V:41', 'name': 'partial', 'variableCollectionId': 'VC:1', 'resolvedType': 'COLOR',
                    'valuesByMode': {'1:0': alias('V:1'), '1:1': alias('V:404')}}
        record = run_extract(variable, [theme_collection], known=[background_variable])
        assert record.values == {'Light': '#ffffff'}
        assert record.value == '#ffffff'

    def test_lookup_through_source(self, theme_collection):
        remote = {'id': 'V:50', 'name': 'remote', 'resolvedType': 'COLOR',
                  'valuesByMode': {'x:0': {'r': 0, 'g': 0, 'b': 1}}}
        calls = []

        async def lookup(variable_id):
            calls.append(variable_id)
            return remote if variable_id == 'V:50' else None

        variable = {'id': 'V:51', 'name': 'linked', 'variableCollectionId': 'VC:1', 'resolvedType': 'COLOR',
                    'valuesByMode': {'1:0': alias('V:50'), '1:1': alias('V:50')}}
        record = run_extract(variable, [theme_collection], lookup=lookup)
        assert record.values == {'Light': '#0000ff', 'Dark': '#0000ff'}
        assert calls == ['V:50']
