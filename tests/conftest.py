"""Shared test fixtures for extractor and exporter tests."""
import pytest


@pytest.fixture
def solid_paint_style():
    """Paint style with a single opaque black fill."""
    return {
        'id': 'S:1',
        'name': 'Brand / Primary',
        'description': 'Primary brand color',
        'paints': [{'type': 'SOLID', 'color': {'r': 0, 'g': 0, 'b': 0}, 'opacity': 1}],
    }


@pytest.fixture
def linear_gradient_style():
    """Linear gradient, identity transform, red to blue."""
    return {
        'id': 'S:2',
        'name': 'Gradients / Sunset',
        'description': '',
        'paints': [{
            'type': 'GRADIENT_LINEAR',
            'opacity': 1,
            'gradientTransform': [[1, 0, 0], [0, 1, 0]],
            'gradientStops': [
                {'position': 0, 'color': {'r': 1, 'g': 0, 'b': 0, 'a': 1}},
                {'position': 1, 'color': {'r': 0, 'g': 0, 'b': 1, 'a': 1}},
            ],
        }],
    }


@pytest.fixture
def text_style():
    """Text style using Inter Semi Bold with percent line height."""
    return {
        'id': 'S:3',
        'name': 'Heading / H1',
        'description': 'Page titles',
        'fontName': {'family': 'Inter', 'style': 'Semi Bold'},
        'fontSize': 32,
        'lineHeight': {'unit': 'PERCENT', 'value': 125},
        'letterSpacing': {'unit': 'PERCENT', 'value': -2},
        'textCase': 'ORIGINAL',
        'textDecoration': 'NONE',
    }


@pytest.fixture
def drop_shadow_style():
    """Effect style with one semi-transparent drop shadow."""
    return {
        'id': 'S:4',
        'name': 'Elevation / 1',
        'description': '',
        'effects': [{
            'type': 'DROP_SHADOW', 'visible': True, 'radius': 8, 'spread': 0,
            'color': {'r': 0, 'g': 0, 'b': 0, 'a': 0.5},
            'offset': {'x': 2, 'y': 4},
            'blendMode': 'NORMAL',
        }],
    }


@pytest.fixture
def grid_style():
    """Grid style with a 12 column layout."""
    return {
        'id': 'S:5',
        'name': 'Layout / Desktop',
        'description': '',
        'layoutGrids': [{
            'pattern': 'COLUMNS', 'count': 12, 'gutterSize': 24, 'offset': 80,
            'alignment': 'STRETCH', 'visible': True,
        }],
    }


@pytest.fixture
def theme_collection():
    """Collection with Light and Dark modes."""
    return {
        'id': 'VC:1',
        'name': 'Theme',
        'modes': [{'modeId': '1:0', 'name': 'Light'}, {'modeId': '1:1', 'name': 'Dark'}],
        'defaultModeId': '1:0',
    }


@pytest.fixture
def spacing_collection():
    """Single-mode collection."""
    return {
        'id': 'VC:2',
        'name': 'Spacing',
        'modes': [{'modeId': '2:0', 'name': 'Value'}],
        'defaultModeId': '2:0',
    }


@pytest.fixture
def empty_collection():
    """Collection without any variables."""
    return {
        'id': 'VC:3',
        'name': 'Unused',
        'modes': [{'modeId': '3:0', 'name': 'Default'}],
        'defaultModeId': '3:0',
    }


@pytest.fixture
def background_variable():
    """Color variable with a value per theme mode."""
    return {
        'id': 'V:1',
        'name': 'color/background',
        'description': 'Page background',
        'variableCollectionId': 'VC:1',
        'resolvedType': 'COLOR',
        'scopes': ['FRAME_FILL'],
        'hiddenFromPublishing': False,
        'valuesByMode': {
            '1:0': {'r': 1, 'g': 1, 'b': 1, 'a': 1},
            '1:1': {'r': 0, 'g': 0, 'b': 0, 'a': 1},
        },
    }


@pytest.fixture
def surface_alias_variable():
    """Color variable aliasing color/background in both modes."""
    return {
        'id': 'V:2',
        'name': 'color/surface',
        'variableCollectionId': 'VC:1',
        'resolvedType': 'COLOR',
        'valuesByMode': {
            '1:0': {'type': 'VARIABLE_ALIAS', 'id': 'V:1'},
            '1:1': {'type': 'VARIABLE_ALIAS', 'id': 'V:1'},
        },
    }


@pytest.fixture
def spacing_variable():
    return {
        'id': 'V:3',
        'name': 'spacing/md',
        'variableCollectionId': 'VC:2',
        'resolvedType': 'FLOAT',
        'valuesByMode': {'2:0': 16},
    }


@pytest.fixture
def snapshot(
    solid_paint_style, linear_gradient_style, text_style, drop_shadow_style, grid_style,
    theme_collection, spacing_collection, empty_collection,
    background_variable, surface_alias_variable, spacing_variable,
):
    """A complete plugin-shaped document snapshot."""
    return {
        'name': 'Design System',
        'key': 'abcdefghij123',
        'paintStyles': [solid_paint_style, linear_gradient_style],
        'textStyles': [text_style],
        'effectStyles': [drop_shadow_style],
        'gridStyles': [grid_style],
        'variables': [
            background_variable,
            surface_alias_variable,
            spacing_variable,
            {
                'id': 'V:4',
                'name': 'feature/beta',
                'variableCollectionId': 'VC:2',
                'resolvedType': 'BOOLEAN',
                'valuesByMode': {'2:0': False},
            },
            {
                'id': 'V:5',
                'name': 'font/family',
                'variableCollectionId': 'VC:2',
                'resolvedType': 'STRING',
                'valuesByMode': {'2:0': 'Inter'},
            },
        ],
        'variableCollections': [theme_collection, spacing_collection, empty_collection],
    }
