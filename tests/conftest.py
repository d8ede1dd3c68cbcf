from pathlib import Path
from typing import List, Optional

import pytest

from tekla_api_docs.config import Settings
from tekla_api_docs.parsing.detail_extractor import DetailExtractor
from tekla_api_docs.retrieval.remote_fallback import RemoteFallback
from tekla_api_docs.retrieval.resolution_engine import ResolutionEngine
from tekla_api_docs.schemas import ApiRecord, CodeExample, RemoteApiResult
from tekla_api_docs.store.record_store import RecordStore

FIXTURES = Path(__file__).resolve().parent / "fixtures"
HTML_DIR = FIXTURES / "html"
BEAM_PAGE = "T_Tekla_Structures_Model_Beam.htm"

MODEL = "Tekla.Structures.Model"
DRAWING = "Tekla.Structures.Drawing"


class StubFallback(RemoteFallback):
    """In-memory fallback that records every transport call."""

    def __init__(
        self,
        search_results: Optional[List[RemoteApiResult]] = None,
        class_result: Optional[RemoteApiResult] = None,
        method_result: Optional[RemoteApiResult] = None,
        fail: bool = False,
    ):
        super().__init__()
        self.search_results = search_results or []
        self.class_result = class_result
        self.method_result = method_result
        self.fail = fail
        self.calls = []

    async def _search(self, query, kind_filter, limit):
        self.calls.append(("search", query, kind_filter, limit))
        if self.fail:
            raise ConnectionError("remote unavailable")
        return self.search_results

    async def _class_details(self, name):
        self.calls.append(("class", name))
        if self.fail:
            raise ConnectionError("remote unavailable")
        return self.class_result

    async def _method_details(self, name, class_name):
        self.calls.append(("method", name, class_name))
        if self.fail:
            raise ConnectionError("remote unavailable")
        return self.method_result


def record(title: str, kind: str, namespace: str = MODEL, summary: str = "", **extra) -> ApiRecord:
    return ApiRecord(
        title=title,
        kind=kind,
        namespace=namespace,
        normalized_namespace=namespace,
        summary=summary,
        **extra,
    )


def make_engine(
    records: List[ApiRecord],
    examples: Optional[List[CodeExample]] = None,
    fallback: Optional[RemoteFallback] = None,
) -> ResolutionEngine:
    settings = Settings(html_dir=HTML_DIR, fallback_enabled=False)
    store = RecordStore(records=records, examples=examples or [])
    return ResolutionEngine(
        store,
        fallback=fallback if fallback is not None else StubFallback(),
        detail_extractor=DetailExtractor(HTML_DIR, settings),
        settings=settings,
    )


@pytest.fixture
def beam_records() -> List[ApiRecord]:
    return [
        record("Beam Class", "class", summary="Represents a beam.", source_page=BEAM_PAGE),
        record("Beam.Insert Method", "method"),
    ]


@pytest.fixture
def sample_examples() -> List[CodeExample]:
    return [
        CodeExample(
            name="BeamCreation",
            category="Model/Applications",
            description="Creates a beam between two points.",
            files=["Form1.cs"],
            code_snippets=[
                {"title": "Form1.cs", "code": "Beam beam = new Beam(p1, p2);\nbeam.Insert();", "language": "csharp"},
                {"title": "Module1.vb", "code": "Dim beam As New Beam()", "language": "vb"},
            ],
            api_elements=["Tekla.Structures.Model.Beam", "Tekla.Structures.Model.Model"],
        ),
        CodeExample(
            name="GridPlugin",
            category="Model/Plugins",
            description="Plugin that creates grids.",
            code_snippets=[{"title": "GridPlugin.cs", "code": "public class GridPlugin : PluginBase {}"}],
            api_elements=["Tekla.Structures.Plugins.PluginBase"],
        ),
        CodeExample(
            name="ColumnCreation",
            category="Model/Applications",
            description="Creates a column.",
            api_elements=["Tekla.Structures.Model.Beam"],
        ),
    ]
