"""Tests for the BeautifulSoup document backend."""

import pytest

from pcsp_crawler.errors import DocumentTimeoutError, ReadOnlyDocumentError
from pcsp_crawler.snapshot import SoupDocument

HTML = """
<html><head><title>Snapshot</title></head><body>
  <div id="a"><p class="x">uno</p><p>dos</p><p class="x">tres</p></div>
  <div id="b" style="display: none"><span id="inner">oculto</span></div>
  <div id="c" hidden><span>también oculto</span></div>
  <select id="estado"><option selected>Anulada</option><option>Publicada</option></select>
</body></html>
"""


@pytest.fixture
def document():
    return SoupDocument(HTML, url="https://contrataciondelestado.es/")


class TestSoupDocument:
    @pytest.mark.asyncio
    async def test_query_and_text(self, document):
        element = await document.query("#a p:nth-child(2)")
        assert await element.text() == "dos"
        assert await document.query("#missing") is None

    @pytest.mark.asyncio
    async def test_class_attribute_joined(self, document):
        element = await document.query("#a p")
        assert await element.get_attribute("class") == "x"
        assert await element.get_attribute("data-none") is None

    @pytest.mark.asyncio
    async def test_visibility_inherits_from_ancestors(self, document):
        assert await (await document.query("#a")).is_visible() is True
        assert await (await document.query("#inner")).is_visible() is False
        assert await (await document.query("#c span")).is_visible() is False

    @pytest.mark.asyncio
    async def test_elements_from_replaced_document_are_not_visible(self, document):
        element = await document.query("#a")
        document.load("<html><body><div id='a'></div></body></html>")
        assert await element.is_visible() is False

    @pytest.mark.asyncio
    async def test_position_path(self, document):
        element = await document.query("#a p:nth-child(3)")
        # html > body(1) > div#a(0) > p(2)
        assert await element.position_path() == (1, 0, 2)

    @pytest.mark.asyncio
    async def test_scoped_position_path(self, document):
        third = (await document.query_all("#a p.x"))[1]
        assert await third.position_path(".x") == (1,)

    @pytest.mark.asyncio
    async def test_wait_for(self, document):
        assert await document.wait_for("#a") is not None
        with pytest.raises(DocumentTimeoutError):
            await document.wait_for("#b", state="visible")
        assert await document.wait_for("#b", state="attached") is not None
        assert await document.wait_for("#missing", state="detached") is None
        with pytest.raises(DocumentTimeoutError):
            await document.wait_for("#missing")

    @pytest.mark.asyncio
    async def test_select_option(self, document):
        await document.select_option("#estado", "Publicada")
        selected = await document.query("#estado option[selected]")
        assert await selected.text() == "Publicada"

        with pytest.raises(ValueError):
            await document.select_option("#estado", "Adjudicada")

    @pytest.mark.asyncio
    async def test_read_only_click(self, document):
        with pytest.raises(ReadOnlyDocumentError):
            await (await document.query("#a")).click()

    @pytest.mark.asyncio
    async def test_goto_only_changes_url(self, document):
        await document.goto("https://contrataciondelestado.es/otra")
        assert document.url == "https://contrataciondelestado.es/otra"
        assert await document.query("#a") is not None

    def test_from_file(self, tmp_path):
        snapshot = tmp_path / "page.html"
        snapshot.write_text(HTML, encoding="utf-8")
        document = SoupDocument.from_file(str(snapshot), url="https://example.org/")
        assert document.url == "https://example.org/"
        assert document.soup.select_one("#inner").get_text() == "oculto"
