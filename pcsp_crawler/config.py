# URL Configuration
BASE_URL = "https://contrataciondelestado.es"
LIST_URL = "https://contrataciondelestado.es/wps/portal/licitaciones"
PLATFORM_URL = "https://contrataciondelestado.es/wps/portal/plataforma"  # Entry point for the CPV selector

# Selectors
SELECTORS = {
    "list": {
        # JSF ids contain ':' which must be escaped in CSS
        "search_form_link": "#viewns_Z7_AVEQAI930OBRD02JPMTPG21004_\\:form1\\:linkFormularioBusqueda",
        "status_select": "select#viewns_Z7_AVEQAI930OBRD02JPMTPG21004_\\:form1\\:estadoLici",
        "status_label": "Publicada",
        "search_btn": "input[type='submit'][value='Buscar'], button:has-text('Buscar')",
        "table": "table#myTablaBusquedaCustom",
        "rows": "table#myTablaBusquedaCustom tbody tr",
        "cells": {
            "file": ".tdExpediente",
            "contract_type": ".tdTipoContrato",
            "status": ".tdEstado",
            "amount": ".tdImporte",
            "due_date": ".tdFechaLimite",
            "contracting_body": ".tdOrganoContratacion",
        },
        "file": {
            "id": "span[id*='textoEnlace']",
            "description": "div:nth-child(2)",
            "electronic_bid": ".imgELicitacion",
            "link": "a[href*='deeplink']",
        },
        "contract_type": {
            "type": "div:nth-child(1)",
            "subtype": "div:nth-child(2)",
        },
        "pagination": {
            "next_btn": "a.siguientePagina:not(.disabled)",
        },
    },
    "cpv": {
        # Menu path from the platform home to the CPV selector
        "menu_links": ["Buscar publicaciones", "Licitaciones Búsqueda de", "Selección CPV"],
        "node": "table.tree_nodeStyle",
        "label": "label[class*='tree_label']",
        "indent_cell": "td[width]",
        "expand_btn": "img[alt='Click to expand']",
        "item": ".tree_item",  # Wrapper holding a node and its children; path strategy only
    },
}

# Crawler Configuration
TIMEOUT = 30000  # 30 seconds
NAVIGATION_TIMEOUT = 60000  # First load of the portal is slow
HEADLESS = True
PAGE_SETTLE_DELAY = 2.0  # Seconds - allow the results table to update
EXPAND_SETTLE_DELAY = 0.1  # Seconds - allow revealed tree nodes to render
BLOCKED_RESOURCE_TYPES = ("image", "stylesheet", "font", "media")

# Production Settings
MAX_RETRIES = 3
RETRY_DELAY = 1  # Seconds, multiplied by the attempt number
MAX_PAGES = None  # No cap; the missing 'next' control ends the harvest
EXPAND_MAX_ITERATIONS = 100

# Parsing
INDENT_WIDTH_PX = 19  # Each tree level is indented by 19px
SOURCE_DATE_FORMAT = "%d/%m/%Y"
OUTPUT_DATE_FORMAT = "%Y-%m-%d"
