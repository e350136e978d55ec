import pytest

from pipelines.structured_parser import StructuredParser

API_PAGE = """
<html><body>
<h1>ajax.reload()</h1>
<div class="doc-content">
  <p>Since: DataTables 1.10</p>
  <h2 data-anchor="Description">Description</h2>
  <p>In an environment where the data shown in the table can be updated at the server-side, it is often useful to be able to reload the table.</p>
  <div class="api-signature">ajax.reload( callback, resetPaging )</div>
  <table class="parameters">
    <tbody>
      <tr><td>1</td><td><code>callback</code></td><td><code>function</code></td><td>Yes - default: null</td></tr>
      <tr class="continuation"><td colspan="4">Function which is executed when the data has been reloaded.</td></tr>
      <tr><td>2</td><td><code>resetPaging</code></td><td><code>boolean</code></td><td>Yes - default: true</td></tr>
      <tr class="continuation"><td colspan="4">Reset (default action or true) or hold the current paging position.</td></tr>
      <tr><td>3</td><td><code>extra</code></td><td><code>object</code></td><td>No</td></tr>
    </tbody>
  </table>
  <h3>Returns:</h3>
  <p>DataTables.Api DataTables API instance</p>
  <div class="reference_example">
    <div class="title"><p>Reload the table data every 30 seconds:</p></div>
    <pre><code class="multiline language-js">setInterval(function () { table.ajax.reload(); }, 30000);</code></pre>
  </div>
  <div class="reference_example">
    <div class="title"><p>No code here</p></div>
  </div>
  <div class="reference_related">API<ul><li><a><code>ajax.url()</code></a></li><li><a><code>ajax.json()</code></a></li></ul></div>
  <div class="reference_related">Events<ul><li><a><code>xhr</code></a></li></ul></div>
  <div class="reference_related">Misc<ul><li><a><code>ignored</code></a></li></ul></div>
  <p><strong>Note:</strong> requires <b>ajax</b>. <span class="warning">Warning: deprecated in 3.0</span></p>
  <p><strong>Note:</strong> repeated</p>
</div>
</body></html>
"""

OPTION_PAGE = """
<html><body>
<h1>columns.render</h1>
<div class="reference-description"><p>This property will modify the data that is used by DataTables for various operations.</p></div>
<p>Since: DataTables 1.10.0</p>
<h3>function</h3><p>A rendering function.</p>
<h3>string</h3><p>Read an object property.</p>
<h3>Examples</h3>
<div class="reference_example">
  <pre><code class="language-html">&lt;td&gt;x&lt;/td&gt;</code></pre>
</div>
</body></html>
"""

EXAMPLE_PAGE = """
<html><body>
<h1>Zero configuration</h1>
<pre><code class="language-js">new DataTable('#example');</code></pre>
<pre><code class="language-css">table { width: 100%; }</code></pre>
<pre><code>   </code></pre>
</body></html>
"""


@pytest.fixture
def parser():
    return StructuredParser()


class TestApiPage:

    def test_header_fields(self, parser):
        page = parser.parse_api_page(API_PAGE)
        assert page.signature == "ajax.reload( callback, resetPaging )"
        assert page.since_version == "1.10"
        assert page.description.startswith("In an environment where the data")

    def test_parameters(self, parser):
        params = parser.parse_api_page(API_PAGE).parameters
        assert [(p.position, p.name, p.type) for p in params] == [
            (1, "callback", "function"),
            (2, "resetPaging", "boolean"),
            (3, "extra", "object"),
        ]
        assert params[0].optional and params[0].default == "null"
        assert params[0].description == "Function which is executed when the data has been reloaded."
        assert not params[2].optional
        assert params[2].description == ""

    def test_return_type(self, parser):
        returns = parser.parse_api_page(API_PAGE).returns
        assert returns.type == "DataTables.Api"
        assert returns.description == "DataTables.Api DataTables API instance"

    def test_examples(self, parser):
        examples = parser.parse_api_page(API_PAGE).examples
        assert len(examples) == 1
        assert examples[0].title == "Reload the table data every 30 seconds:"
        assert examples[0].language == "javascript"

    def test_related(self, parser):
        related = parser.parse_api_page(API_PAGE).related
        assert related == {"API": ["ajax.url()", "ajax.json()"], "Options": [], "Events": ["xhr"]}

    def test_notes_deduplicated(self, parser):
        notes = parser.parse_api_page(API_PAGE).notes
        assert notes == ["Note:", "Warning: deprecated in 3.0"]

    def test_signature_from_title(self, parser):
        page = parser.parse_api_page("<html><body><h1>row().data()</h1></body></html>")
        assert page.signature == "row().data()"

    def test_plain_page_is_empty(self, parser):
        page = parser.parse_api_page("<html><body><h1>Intro</h1><p>Hello</p></body></html>")
        assert page.signature is None
        assert page.is_empty


class TestOptionPage:

    def test_fields(self, parser):
        page = parser.parse_option_page(OPTION_PAGE)
        assert page.since_version == "1.10.0"
        assert page.description.startswith("This property will modify")
        assert [(v.type, v.description) for v in page.value_types] == [
            ("function", "A rendering function."),
            ("string", "Read an object property."),
        ]
        assert page.examples[0].language == "html"
        assert page.examples[0].code == "<td>x</td>"
        assert page.signature is None


def test_example_page(parser):
    page = parser.parse_example_page(EXAMPLE_PAGE)
    assert [(e.language, e.code) for e in page.examples] == [
        ("javascript", "new DataTable('#example');"),
        ("css", "table { width: 100%; }"),
    ]
