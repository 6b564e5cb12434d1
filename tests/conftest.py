"""Shared fixtures: fake listing portal and CPV tree widgets on static HTML."""

from typing import List, Optional

import pytest
from bs4 import BeautifulSoup

from pcsp_crawler.config import INDENT_WIDTH_PX, LIST_URL, SELECTORS
from pcsp_crawler.document import Element
from pcsp_crawler.snapshot import SoupDocument


def row_html(
    file_id: str = "2024/0001",
    description: str = "Servicio de limpieza de edificios municipales",
    electronic: bool = True,
    contract_type: str = "Servicios",
    subtype: str = "Limpieza",
    status: str = "Publicada",
    amount: str = "12.500,00 EUR",
    due_date: str = "31/12/2024",
    body: str = "Ayuntamiento de Madrid",
    broken: bool = False,
) -> str:
    badge = '<img class="imgELicitacion" src="elic.gif"/>' if electronic else ''
    marker = ' data-broken="1"' if broken else ''
    return f"""
    <tr{marker}>
      <td class="tdExpediente">
        <div><a href="/wps/poc?uri=deeplink:detalle_licitacion&amp;idEvl={file_id}">
          <span id="viewns:form1:textoEnlace_{file_id}">{file_id}</span></a></div>
        <div>{description}</div>
        {badge}
      </td>
      <td class="tdTipoContrato"><div>{contract_type}</div><div>{subtype}</div></td>
      <td class="tdEstado"> {status} </td>
      <td class="tdImporte">{amount}</td>
      <td class="tdFechaLimite">{due_date}</td>
      <td class="tdOrganoContratacion"><a href="/wps/poc?uri=deeplink:perfilContratante">{body}</a></td>
    </tr>"""


def listing_page_html(rows: List[str], has_next: bool = False) -> str:
    if has_next:
        pager = '<a class="siguientePagina" href="#">Siguiente &gt;&gt;</a>'
    else:
        pager = '<a class="siguientePagina disabled">Siguiente &gt;&gt;</a>'
    return f"""
    <html><body>
      <table id="myTablaBusquedaCustom">
        <thead><tr><th>Expediente</th><th>Tipo</th><th>Estado</th><th>Importe</th><th>Fecha</th><th>Órgano</th></tr></thead>
        <tbody>{''.join(rows)}</tbody>
      </table>
      <div class="paginacion">{pager}</div>
    </body></html>"""


class BrokenElement(Element):
    """A row handle whose element vanished from the page."""

    def _fail(self, *args, **kwargs):
        raise RuntimeError("Element is not attached to the DOM")

    async def query(self, selector):
        self._fail()

    async def query_all(self, selector):
        self._fail()

    async def text(self):
        self._fail()

    async def get_attribute(self, name):
        self._fail()

    async def click(self):
        self._fail()

    async def is_visible(self):
        self._fail()

    async def position_path(self, scope=None):
        self._fail()


class FakePortal(SoupDocument):
    """
    Paginated results table: clicking the 'next' link loads the next page.
    Rows marked ``data-broken`` come back as detached handles.
    """

    def __init__(self, pages: List[List[str]]):
        self.pages = pages
        self.current = 0
        self.next_clicks = 0
        super().__init__(self._page(0), url=LIST_URL, on_click=self._on_click)

    def _page(self, index: int) -> str:
        return listing_page_html(self.pages[index], has_next=index < len(self.pages) - 1)

    async def _on_click(self, document, element):
        if 'siguientePagina' in (element.tag.get('class') or []):
            self.next_clicks += 1
            self.current += 1
            self.load(self._page(self.current))

    async def query_all(self, selector):
        elements = await super().query_all(selector)
        if selector != SELECTORS['list']['rows']:
            return elements
        return [BrokenElement() if e.tag.has_attr('data-broken') else e for e in elements]


class FailingPortal(FakePortal):
    """Portal whose pagination breaks on the ``fail_on``-th next-page click."""

    def __init__(self, pages: List[List[str]], fail_on: int):
        super().__init__(pages)
        self.fail_on = fail_on

    async def _on_click(self, document, element):
        if self.next_clicks + 1 >= self.fail_on:
            raise RuntimeError("Target page, context or browser has been closed")
        await super()._on_click(document, element)


def node_html(label: str, depth: int, item_id: str, expandable: bool = False,
              children: str = "", indent: Optional[str] = None) -> str:
    toggle = '<img alt="Click to expand" src="expand.gif"/>' if expandable else '<img alt="" src="blank.gif"/>'
    width = depth * INDENT_WIDTH_PX
    indent_cell = indent if indent is not None else f'<td width="{width}" style="width: {width}px"></td>'
    return (
        f'<div class="tree_item" id="{item_id}">'
        f'<table class="tree_nodeStyle"><tr>{indent_cell}<td>{toggle}</td>'
        f'<td><label class="tree_label">{label}</label></td></tr></table>'
        f'<div class="tree_children">{children}</div>'
        f'</div>'
    )


def tree_page_html(items: str) -> str:
    return f'<html><body><div class="tree">{items}</div></body></html>'


def render_expanded(nodes, depth: int = 0, prefix: str = "n") -> str:
    """Nested (label, children) tuples rendered fully expanded."""
    return "".join(
        node_html(label, depth, f"{prefix}{i}", children=render_expanded(children, depth + 1, f"{prefix}{i}_"))
        for i, (label, children) in enumerate(nodes)
    )


class ExpandableTree:
    """Tree widget that only renders a node's children once it is expanded."""

    def __init__(self, nodes):
        self.pending = {}
        self.counter = 0
        self.document = SoupDocument(tree_page_html(self._render(nodes, 0)), on_click=self._on_click)

    def _render(self, nodes, depth: int) -> str:
        parts = []
        for label, children in nodes:
            item_id = f"n{self.counter}"
            self.counter += 1
            if children:
                self.pending[item_id] = (children, depth + 1)
            parts.append(node_html(label, depth, item_id, expandable=bool(children)))
        return "".join(parts)

    async def _on_click(self, document, element):
        item = element.tag.find_parent(class_="tree_item")
        children, depth = self.pending.pop(item['id'])
        fragment = BeautifulSoup(self._render(children, depth), 'lxml')
        container = item.find('div', class_="tree_children", recursive=False)
        for child in list(fragment.body.children):
            container.append(child)
        element.tag['alt'] = "Click to collapse"


class EndlessTree:
    """Pathological widget: every expansion reveals one more expandable node."""

    def __init__(self):
        self.counter = 0
        self.document = SoupDocument(
            tree_page_html(node_html("00000000-Raíz", 0, "n0", expandable=True)),
            on_click=self._on_click,
        )

    async def _on_click(self, document, element):
        self.counter += 1
        item = element.tag.find_parent(class_="tree_item")
        depth = self.counter
        fragment = BeautifulSoup(
            node_html(f"{self.counter:08d}-Nivel {depth}", depth, f"n{self.counter}", expandable=True), 'lxml'
        )
        container = item.find('div', class_="tree_children", recursive=False)
        container.append(fragment.find('div', class_="tree_item"))
        element.tag['alt'] = "Click to collapse"


def shape(nodes):
    """Nested (code-or-description, children) tuples for comparing trees."""
    return [(n.code or n.description, shape(n.children)) for n in nodes]


CPV_SAMPLE = [
    ("03000000-Productos de la agricultura", [
        ("03100000-Productos agrícolas y hortícolas", []),
        ("03200000-Cereales, patatas, legumbres", [
            ("03210000-Cereales y patatas", []),
        ]),
    ]),
    ("09000000-Derivados del petróleo", []),
]

CPV_SAMPLE_SHAPE = [
    ("03000000", [
        ("03100000", []),
        ("03200000", [("03210000", [])]),
    ]),
    ("09000000", []),
]


@pytest.fixture
def cpv_sample():
    return CPV_SAMPLE


@pytest.fixture
def expanded_tree_document():
    return SoupDocument(tree_page_html(render_expanded(CPV_SAMPLE)))
