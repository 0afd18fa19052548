#!/usr/bin/env python3
"""
reflow: Rebuilds a PDF into a chaptered, paginated document for reading.

This script is a thin command line host for reflow_lib. It decodes the PDF
(falling back to OCR for scanned pages), reconstructs reading order, paragraphs
and chapters, repaginates under a character budget and prints a summary of the
result. The document can also be saved as JSON or as plain text.
"""

import argparse
import json
import logging
import os
import sys
import time

# --- Dependency Imports ---
try:
    from rich.console import Console
    from rich.table import Table
    from rich.theme import Theme
except ImportError as e:
    print(f"Error: Missing required library. -> {e}")
    print("Please install all core dependencies with:")
    print("pip install -e .")
    sys.exit(1)

# --- Local Application Imports ---
from reflow_lib.api import parse_page_selection, process_pdf
from reflow_lib.config import load_config, save_config
from reflow_lib.models import document_to_dict, summarize_document

from core.log_utils import setup_logging


# --- CUSTOM ARGPARSE FORMATTER ---
class CustomHelpFormatter(
    argparse.ArgumentDefaultsHelpFormatter, argparse.RawTextHelpFormatter
):
    """
    A custom argparse formatter that combines showing default values with
    preserving newline formatting in help text.
    """

    pass


class Application:
    """Orchestrates the PDF reflow workflow based on command-line arguments."""

    THEME = Theme(
        {
            "table.header": "bold sky_blue2",
            "title": "bold sky_blue2",
            "muted": "grey62",
        }
    )

    def __init__(self, args):
        self.args = args
        self.stats = {}
        self.console = Console(theme=self.THEME)

    def run(self):
        """Main entry point for the application logic."""
        self.stats["start_time"] = time.monotonic()
        setup_logging(
            project_name="reflow",
            level=logging.INFO if self.args.verbose else logging.WARNING,
            color_logs=self.args.color_logs,
            debug_topics=self.args.debug_topics,
            log_file=self.args.log_file,
        )

        config = self._build_config()
        if self.args.write_config:
            save_config(config, self.args.write_config)

        pages = self.args.pages
        if pages.lower() != "all" and parse_page_selection(pages) is None:
            logging.getLogger("reflow").error("Invalid --pages format: %s.", pages)
            sys.exit(1)

        doc = process_pdf(
            self.args.pdf_file,
            config=config,
            progress_callback=self._report_progress,
            pages=pages,
        )
        self.stats["duration"] = time.monotonic() - self.stats["start_time"]

        self._display_summary(doc)
        self._save_json(doc)
        self._save_text(doc)

    def _build_config(self):
        """Loads the INI config (if any) and applies command line overrides."""
        config = load_config(self.args.config)
        return config.replace(
            max_chars_per_page=self.args.max_chars,
            ocr_language=self.args.ocr_lang,
            ocr_enabled=False if self.args.no_ocr else None,
        )

    def _report_progress(self, message, percent=None):
        log = logging.getLogger("reflow")
        if percent is None:
            log.info("%s", message)
        else:
            log.info("[%3d%%] %s", percent, message)

    def _display_summary(self, doc):
        """Prints a per-chapter summary table of the reconstructed document."""
        table = Table(title=doc.title, title_style="title", header_style="table.header")
        table.add_column("#", justify="right", style="muted")
        table.add_column("Chapter")
        table.add_column("Paragraphs", justify="right")
        table.add_column("Pages", justify="right")
        table.add_column("Chars", justify="right")
        for i, row in enumerate(summarize_document(doc), start=1):
            table.add_row(
                str(i),
                row["title"],
                f"{row['paragraphs']:,}",
                f"{row['pages']:,}",
                f"{row['char_count']:,}",
            )
        self.console.print(table)
        self.console.print(
            f"[muted]{len(doc.chapters)} chapter(s), {doc.total_pages} page(s), "
            f"{doc.total_paragraphs} paragraph(s) in {self.stats['duration']:.1f}s[/muted]"
        )

    def _save_json(self, doc):
        """Saves the document as JSON if requested."""
        if not self.args.output_file:
            return
        try:
            with open(self.args.output_file, "w", encoding="utf-8") as f:
                json.dump(document_to_dict(doc), f, indent=2, ensure_ascii=False)
            logging.getLogger("reflow").info(
                "Document saved to: '%s'", self.args.output_file
            )
        except IOError as e:
            logging.getLogger("reflow").error("Error saving document: %s", e)

    def _save_text(self, doc):
        """Saves the paginated text, one block per page, if requested."""
        if not self.args.dump_file:
            return
        content = []
        for chapter in doc.chapters:
            content.append(f"=== {chapter.title} ===")
            for n, page in enumerate(chapter.pages, start=1):
                content.append(f"--- Page {n} ---\n" + "\n\n".join(page))
        try:
            with open(self.args.dump_file, "w", encoding="utf-8") as f:
                f.write("\n\n".join(content) + "\n")
            logging.getLogger("reflow").info(
                "Paginated text saved to: '%s'", self.args.dump_file
            )
        except IOError as e:
            logging.getLogger("reflow").error("Error saving text: %s", e)

    @staticmethod
    def parse_arguments(args=None):
        """Parses command-line arguments for the script."""
        examples = [
            "\nExamples:",
            "  python reflow.py book.pdf",
            '  python reflow.py book.pdf -p "1-20" -o book.json',
            "  python reflow.py scan.pdf --ocr-lang es -v",
            "  python reflow.py book.pdf -d layout,paginate --color-logs",
        ]

        parser = argparse.ArgumentParser(
            description="Rebuilds a PDF into a chaptered, paginated reading document.",
            formatter_class=CustomHelpFormatter,
            add_help=False,
            epilog="\n".join(examples),
        )

        g_opts = parser.add_argument_group("Main Options")
        g_opts.add_argument("pdf_file", help="Path to the input PDF file.")
        g_opts.add_argument(
            "-h",
            "--help",
            action="help",
            help="Show this help message and exit.",
        )

        g_proc = parser.add_argument_group("Processing Control")
        g_proc.add_argument(
            "-p",
            "--pages",
            default="all",
            metavar="PAGES",
            help="Pages to process (e.g., '1,3,5-7'). (default: %(default)s)",
        )
        g_proc.add_argument(
            "-c",
            "--config",
            metavar="FILE",
            default=None,
            help="INI file with [Pagination], [Layout] and [OCR] settings.",
        )
        g_proc.add_argument(
            "-m",
            "--max-chars",
            type=int,
            default=None,
            metavar="N",
            help="Character budget per page. (default: from config, 800)",
        )
        g_proc.add_argument(
            "--no-ocr",
            action="store_true",
            help="Never fall back to OCR for pages without a text layer.",
        )
        g_proc.add_argument(
            "--ocr-lang",
            default=None,
            metavar="LANG",
            help="OCR language code (e.g., 'en', 'es'). (default: from config, en)",
        )

        g_out = parser.add_argument_group("Script Output & Actions")
        g_out.add_argument(
            "-o",
            "--output-file",
            default=None,
            metavar="FILE",
            help="Save the reconstructed document as JSON.",
        )
        g_out.add_argument(
            "-e",
            "--dump",
            dest="dump_file",
            default=None,
            metavar="FILE",
            help="Save the paginated text as plain text.",
        )
        g_out.add_argument(
            "--write-config",
            default=None,
            metavar="FILE",
            help="Write the effective settings to an INI file.",
        )
        g_out.add_argument(
            "--log-file",
            metavar="FILE",
            default=None,
            help="Redirect all logging output to a specified file.",
        )
        g_out.add_argument(
            "--color-logs",
            action="store_true",
            help="Enable colored logging output. (default: %(default)s)",
        )
        g_out.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Enable INFO logging for detailed progress. (default: %(default)s)",
        )
        g_out.add_argument(
            "-d",
            "--debug",
            nargs="?",
            const="all",
            dest="debug_topics",
            metavar="TOPICS",
            help="Enable DEBUG logging (all,extract,layout,structure,paginate,ocr,api).",
        )

        return parser.parse_args(args)


def main():
    """Main entry point for the script."""
    # Basic logging config for early errors before full setup
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        args = Application.parse_arguments(sys.argv[1:])
        if not os.path.exists(args.pdf_file):
            raise FileNotFoundError(f"PDF file not found: {args.pdf_file}")
        app = Application(args)
        app.run()
    except FileNotFoundError as e:
        logging.getLogger("reflow").critical(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logging.getLogger("reflow").info("\nProcess interrupted by user. Exiting.")
        sys.exit(0)
    except Exception as e:
        logging.getLogger("reflow").critical(
            "\nAn unexpected error occurred: %s", e, exc_info=True
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
