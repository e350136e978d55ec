import pytest

from indexer.models import CodeExample, DocumentRecord, Parameter, ParsedPage, ReturnType, ValueType
from indexer.sqlite_adapter import DocumentationStore
from server.mcp_server import MCPServer
from server.tools import DocumentationTools


SAMPLE_DOCS = [
    (
        DocumentRecord(
            title="ajax.reload()",
            url="https://datatables.net/reference/api/ajax.reload()",
            content="Reload the table data from the Ajax data source. "
                    "Useful for server-side processing tables.",
            section="API",
            doc_type="reference",
            signature="ajax.reload( callback, resetPaging )",
            since_version="1.10",
            description="Reload the table data from the Ajax data source.",
        ),
        ParsedPage(
            parameters=[
                Parameter(1, "callback", "function", optional=True, default="null",
                          description="Function called once the reload is complete"),
                Parameter(2, "resetPaging", "boolean", optional=True, default="true",
                          description="Reset (default) or hold the current paging position"),
            ],
            returns=ReturnType("DataTables.Api", "DataTables.Api instance"),
            examples=[CodeExample("table.ajax.reload();", title="Reload the table data every 30 seconds")],
            related={"API": ["ajax.url()", "ajax.json()"], "Options": ["ajax"], "Events": ["xhr"]},
            notes=["Note: requires the ajax option"],
        ),
    ),
    (
        DocumentRecord(
            title="columns.render",
            url="https://datatables.net/reference/option/columns.render",
            content="Render (process) the data for use in the table. Rendering functions for cells.",
            section="Options",
            doc_type="reference",
        ),
        ParsedPage(
            value_types=[ValueType("function", "Rendering function"), ValueType("string", "Property name")],
            examples=[CodeExample("<td>cell</td>", title="Markup", language="html")],
        ),
    ),
    (
        DocumentRecord(
            title="Server-side processing",
            url="https://datatables.net/manual/server-side",
            content="With server-side processing enabled all paging, searching and ordering "
                    "actions are handed off to a server.",
            section="Server-side processing",
            doc_type="manual",
        ),
        None,
    ),
    (
        DocumentRecord(
            title="Zero configuration",
            url="https://datatables.net/examples/basic_init/zero_configuration.html",
            content="DataTables has most features enabled by default, so all you need to do "
                    "is call the construction function.",
            section="Basic initialisation",
            doc_type="example",
        ),
        ParsedPage(examples=[CodeExample("new DataTable('#example');")]),
    ),
]


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "datatables.db"


@pytest.fixture
def store(db_path):
    """A store populated with a handful of pages and their structured data."""
    store = DocumentationStore(db_path)
    store.connect(create=True)
    for record, page in SAMPLE_DOCS:
        doc_id = store.store_document(record)
        if page is not None:
            store.store_structured(doc_id, page)
    yield store
    store.close()


@pytest.fixture
def tools(store):
    return DocumentationTools(store)


@pytest.fixture
def server(tools):
    return MCPServer(tools)
