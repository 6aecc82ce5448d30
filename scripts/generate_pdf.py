#!/usr/bin/env python3
"""
Render an offerte JSON file to PDF.

Usage:
    python scripts/generate_pdf.py <input.json> [output.pdf]

Without an output path the PDF is written to PDF_OUTPUT_DIR (default output/)
as <offerte-nummer-slug>.pdf.

Examples:
    python scripts/generate_pdf.py tests/fixtures/example_offerte.json
    python scripts/generate_pdf.py offerte.json mijn-offerte.pdf
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from offerte.core.config import get_settings
from offerte.core.formatting import offerte_filename_slug
from offerte.core.logging import get_logger
from offerte.core.offerte_document import assemble_document
from offerte.core.pdf_renderer import OfferteRenderError, render_offerte_pdf
from offerte.core.schemas_offerte import Offerte

logger = get_logger(__name__)


def fail(message: str) -> int:
    print(f"Fout: {message}", file=sys.stderr)
    return 1


def default_output_path(offerte: Offerte) -> Path:
    """output/<slug>.pdf, creating the output directory when needed."""
    output_dir = Path(get_settings().PDF_OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir / f"{offerte_filename_slug(offerte.meta.offerte_nummer)}.pdf"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render an offerte JSON file to PDF")
    parser.add_argument("input", type=Path, help="Offerte JSON file")
    parser.add_argument("output", type=Path, nargs="?", help="Output PDF (default: output/<offertenummer>.pdf)")
    args = parser.parse_args(argv)

    input_path = args.input.resolve()
    if not input_path.is_file():
        return fail(f"bestand niet gevonden: {input_path}")

    try:
        data = json.loads(input_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        return fail(f"fout bij lezen JSON: {e}")

    if not isinstance(data, dict) or data.get("meta") is None:
        return fail('JSON mist het "meta" object. Controleer de structuur.')

    try:
        offerte = Offerte.model_validate(data)
    except ValidationError as e:
        return fail(f"JSON voldoet niet aan het offerte schema:\n{e}")

    output_path = args.output.resolve() if args.output else default_output_path(offerte)
    print(f"Genereren: {input_path.name} -> {output_path.name}")

    try:
        pdf_bytes = render_offerte_pdf(assemble_document(offerte))
        output_path.write_bytes(pdf_bytes)
    except (OfferteRenderError, OSError) as e:
        return fail(f"fout bij schrijven PDF: {e}")

    logger.info(f"Wrote {output_path} ({len(pdf_bytes)} bytes)")
    print(f"PDF succesvol gegenereerd: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
