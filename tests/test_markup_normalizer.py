from conftest import BEAM_PAGE, HTML_DIR

from tekla_api_docs.parsing.markup_normalizer import MarkupNormalizer
from tekla_api_docs.schemas import TocEntry


def _entry(name="Beam Class", page=BEAM_PAGE, kind="class", namespace="", depth=2):
    return TocEntry(display_name=name, target_page=page, kind=kind, namespace=namespace, depth=depth)


def test_normalize_page_extracts_title_namespace_and_summary():
    record = MarkupNormalizer(HTML_DIR).normalize_page(_entry())

    assert record is not None
    assert record.title == "Beam Class"
    assert record.namespace == "Tekla.Structures.Model"
    assert record.normalized_namespace == "Tekla.Structures.Model"
    assert record.summary == "Represents a beam."
    assert record.description == "The Beam class represents a beam in the model."
    assert record.kind == "class"
    assert record.depth == 2
    assert record.source_page == BEAM_PAGE
    assert record.detailed_info is None


def test_missing_or_empty_page_yields_none(tmp_path):
    (tmp_path / "empty.htm").write_text("   \n", encoding="utf-8")
    normalizer = MarkupNormalizer(tmp_path)

    assert normalizer.normalize_page(_entry(page="missing.htm")) is None
    assert normalizer.normalize_page(_entry(page="empty.htm")) is None
    assert normalizer.normalize_page(_entry(page="")) is None


def test_title_falls_back_to_display_name():
    markup = '<html><head><meta name="Description" content="Drawing view." /></head><body></body></html>'
    record = MarkupNormalizer().normalize_markup(markup, _entry(name="View Class", page="T_View.htm"))

    assert record.title == "View Class"


def test_summary_falls_back_to_description_then_empty():
    with_meta = '<html><head><title>Grid Class</title><meta name="Description" content="A grid." /></head></html>'
    without = "<html><head><title>Grid Class</title></head><body><p>Body</p></body></html>"
    normalizer = MarkupNormalizer()

    assert normalizer.normalize_markup(with_meta, _entry()).summary == "A grid."
    bare = normalizer.normalize_markup(without, _entry())
    assert bare.summary == ""
    assert bare.description == ""


def test_namespace_priority_chain():
    normalizer = MarkupNormalizer()

    container = ('<html><head><title>Grid Class</title>'
                 '<meta name="container" content="Tekla.Structures.Model" /></head></html>')
    assert normalizer.normalize_markup(container, _entry()).namespace == "Tekla.Structures.Model"

    from_title = "<html><head><title>Tekla.Structures.Drawing.View Class</title></head></html>"
    assert normalizer.normalize_markup(from_title, _entry()).namespace == "Tekla.Structures.Drawing"

    from_toc = "<html><head><title>Grid Class</title></head></html>"
    toc_entry = _entry(namespace="Tekla.Structures.Model")
    assert normalizer.normalize_markup(from_toc, toc_entry).namespace == "Tekla.Structures.Model"

    unknown = "<html><head><title>Grid Class</title></head></html>"
    assert normalizer.normalize_markup(unknown, _entry()).namespace == ""


def test_title_kind_wins_over_toc_kind():
    markup = "<html><head><title>Beam Class</title></head></html>"
    record = MarkupNormalizer().normalize_markup(markup, _entry(kind="other"))

    assert record.kind == "class"


def test_toc_kind_kept_when_title_is_unclassified():
    markup = "<html><head><title>Beam.Insert Method</title></head></html>"
    record = MarkupNormalizer().normalize_markup(markup, _entry(name="Beam.Insert Method ", kind="method"))

    assert record.kind == "method"


def test_malformed_markup_still_produces_record():
    markup = "<html><head><title>Broken <b>Class</title><div class='summary'>Half <span>open"
    record = MarkupNormalizer().normalize_markup(markup, _entry(name="Broken Class"))

    assert record is not None
    assert record.title
    assert record.summary == "Half open"


def test_summary_blocks_are_tried_in_priority_order():
    introduction = ('<html><head><title>Grid Class</title><meta name="Description" content="Meta text." /></head>'
                    '<body><div class="introduction">Represents a grid.</div></body></html>')
    both = ('<html><head><title>Grid Class</title></head><body>'
            '<div class="description">Longer text.</div><div class="summary">Represents a grid.</div>'
            '</body></html>')
    empty_summary = ('<html><head><title>Grid Class</title></head><body>'
                     '<div class="summary"> </div><div class="description">Grid lines.</div></body></html>')
    normalizer = MarkupNormalizer()

    assert normalizer.normalize_markup(introduction, _entry()).summary == "Represents a grid."
    assert normalizer.normalize_markup(both, _entry()).summary == "Represents a grid."
    assert normalizer.normalize_markup(empty_summary, _entry()).summary == "Grid lines."
