import pytest

from tekla_api_docs.utils.naming import canonical_namespace, classify_kind, derive_namespace, symbol_name
from tekla_api_docs.utils.text_cleaner import clean_text


@pytest.mark.parametrize("name, expected", [
    ("Tekla.Structures", "namespace"),
    ("Tekla.Structures.Model Namespace", "namespace"),
    ("Beam Class", "class"),
    ("Model Classes", "other"),
    ("ModelObjectEnumerator Interface", "interface"),
    ("Position.DepthEnum Enumeration", "enum"),
    ("Beam Properties", "properties-collection"),
    ("Beam Members", "properties-collection"),
    ("Beam Methods", "methods-collection"),
    ("Beam.StartPoint Property ", "property"),
    ("Beam.Insert Method ", "method"),
    ("Beam Constructor (Point, Point)", "method"),
    ("Events.ModelSave Event ", "event"),
    ("Position.Depth Field ", "field"),
    ("Events.ModelSaveDelegate Delegate ", "delegate"),
    ("Overview", "other"),
    ("", "other"),
])
def test_classify_kind_follows_table(name, expected):
    assert classify_kind(name) == expected


def test_classify_kind_uses_table_order_for_double_matches():
    # "Properties" wins over the later " Property " rule
    assert classify_kind("Beam Properties Property ") == "properties-collection"
    # namespace rule comes before everything else
    assert classify_kind("Namespace Class") == "namespace"
    # " Class" excluded by " Classes" falls through to later rules
    assert classify_kind("Helper Classes Methods") == "methods-collection"


def test_derive_namespace_caps_at_three_segments():
    assert derive_namespace("Tekla.Structures.Model.Beam Class") == "Tekla.Structures.Model"
    assert derive_namespace("Tekla.Structures.Model.Position.DepthEnum Enumeration") == "Tekla.Structures.Model"
    assert derive_namespace("Tekla.Structures Namespace") == "Tekla.Structures"
    assert derive_namespace("See Tekla.Structures.Drawing for views") == "Tekla.Structures.Drawing"


def test_derive_namespace_without_root_token():
    assert derive_namespace("Beam Class") == ""
    assert derive_namespace("") == ""
    assert derive_namespace("MyTekla.Structures.Model") == ""


def test_canonical_namespace():
    assert canonical_namespace("  Tekla.Structures.Model   Namespace ") == "Tekla.Structures.Model"
    assert canonical_namespace("Tekla.Structures.") == "Tekla.Structures"
    assert canonical_namespace("") == ""


def test_symbol_name_strips_kind_word_and_signature():
    assert symbol_name("Beam Class") == "Beam"
    assert symbol_name("Beam.Insert Method") == "Beam.Insert"
    assert symbol_name("Beam Constructor (Point, Point)") == "Beam"
    assert symbol_name("Class") == "Class"


def test_clean_text_removes_script_artifacts():
    raw = 'Gets the name AddLanguageSpecificTextSet("LST1?cs=.|vb=.|cpp=::");   of\n the part <b>now</b>'
    assert clean_text(raw) == "Gets the name of the part now"


def test_clean_text_removes_language_switch_fragment_and_object_tail():
    assert clean_text('Beam |vb=Nothing|cpp=nullptr");') == "Beam"
    assert clean_text("Inherits System;Object") == "Inherits System"
