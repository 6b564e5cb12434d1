import asyncio
import logging
import os
from argparse import ArgumentParser, ArgumentTypeError

from pcsp_crawler.browser import open_cpv_selector, open_page
from pcsp_crawler.config import HEADLESS, LIST_URL, MAX_PAGES, PLATFORM_URL
from pcsp_crawler.expander import TreeExpander
from pcsp_crawler.harvester import ListingHarvester, wait_for_results
from pcsp_crawler.model import HarvestState
from pcsp_crawler.reconstructor import STRATEGIES, TreeReconstructor
from pcsp_crawler.snapshot import SoupDocument
from pcsp_crawler.storage import Storage

logger = logging.getLogger("Main")


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise ArgumentTypeError(f"expected a number of pages >= 1, got {value}")
    return number


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Contratación del Estado listings and CPV crawler")
    parser.add_argument("command", choices=["listings", "cpv"])
    parser.add_argument("--output-dir", default="data")
    display = parser.add_mutually_exclusive_group()
    display.add_argument("--headless", dest="headless", action="store_true", default=HEADLESS,
                         help="Run the browser without a window")
    display.add_argument("--headed", dest="headless", action="store_false",
                         help="Show the browser window")
    parser.add_argument("--max-pages", type=positive_int, default=MAX_PAGES)
    parser.add_argument("--strategy", choices=STRATEGIES, default="depth",
                        help="How to rebuild the CPV hierarchy")
    parser.add_argument("--from-html", metavar="FILE",
                        help="Read a saved HTML snapshot instead of driving a browser")
    parser.add_argument("--verbose", action="store_true")
    return parser


async def run_listings(args) -> list:
    # Kept outside the harvest so pages read before a failure are still saved
    state = HarvestState()
    out = os.path.join(args.output_dir, "licitaciones")
    try:
        if args.from_html:
            document = SoupDocument.from_file(args.from_html, url=LIST_URL)
            harvester = ListingHarvester(prepare=wait_for_results, max_pages=1)
            async for state in harvester.iter_states(document):
                pass
        else:
            async with open_page(headless=args.headless) as document:
                harvester = ListingHarvester(max_pages=args.max_pages)
                async for state in harvester.iter_states(document):
                    pass
    except Exception as e:
        logger.error(f"Crawler failed after {state.page_num} pages: {e}", exc_info=True)
    finally:
        records = state.records
        logger.info(f"Crawling finished. Collected {len(records)} items.")
        Storage.save_json(records, f"{out}.json")
        Storage.save_csv(records, f"{out}.csv")
        Storage.save_excel(records, f"{out}.xlsx")
    return records


async def run_cpv(args) -> list:
    roots = []
    out = os.path.join(args.output_dir, "cpv_tree")
    reconstructor = TreeReconstructor(strategy=args.strategy)
    try:
        if args.from_html:
            document = SoupDocument.from_file(args.from_html, url=PLATFORM_URL)
            roots = await reconstructor.reconstruct(document)
        else:
            async with open_page(headless=args.headless) as document:
                await open_cpv_selector(document)
                await TreeExpander().expand_all(document)
                roots = await reconstructor.reconstruct(document)
    except Exception as e:
        logger.error(f"CPV crawl failed: {e}", exc_info=True)
    finally:
        logger.info(f"CPV crawl finished. Collected {len(roots)} root nodes.")
        Storage.save_json(roots, f"{out}.json")
        Storage.save_tree_html(roots, f"{out}.html")
        Storage.save_tree_excel(roots, f"{out}.xlsx")
    return roots


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger.info(f"Starting Contratación del Estado crawler ({args.command})")
    if args.command == "listings":
        asyncio.run(run_listings(args))
    else:
        asyncio.run(run_cpv(args))


if __name__ == "__main__":
    main()
