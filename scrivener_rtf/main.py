"""Entry-point for the Scrivener RTF normalisation pipeline."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from scrivener_rtf.model.document_model import RtfDocument
from scrivener_rtf.parser.rtf_parser import parse_rtf
from scrivener_rtf.parser.style_tags import ScrivenerStyleDecoder
from scrivener_rtf.renderer.rtf_writer import RtfWriter
from scrivener_rtf.utils.debug import DebugDumper
from scrivener_rtf.utils.logger import get_logger, set_verbosity

LOGGER = get_logger(__name__)


def load_rtf_document(rtf_path: Path, *, strict: bool = False) -> RtfDocument:
    """Read an RTF file and parse it into the paragraph model."""
    return parse_rtf(Path(rtf_path).read_bytes(), strict=strict)


def write_outputs(
    document: RtfDocument,
    output_dir: Path,
    *,
    stem: str = "document",
    restore_style_tags: bool = True,
) -> Dict[str, Path]:
    """Write the re-serialized RTF and its plain-text projection."""
    output_dir.mkdir(parents=True, exist_ok=True)
    paragraphs = document.paragraphs
    if restore_style_tags and document.annotations:
        paragraphs = ScrivenerStyleDecoder().restore_paragraphs(paragraphs, document.annotations)

    rtf_path = output_dir / f"{stem}.rtf"
    rtf_path.write_bytes(RtfWriter(paragraphs, document.metadata).convert_bytes())
    text_path = output_dir / f"{stem}.txt"
    text_path.write_text(document.plain_text, encoding="utf-8")
    return {"rtf": rtf_path, "text": text_path}


def main(rtf_file: str, output_dir: Optional[str] = None, *, strict: bool = False) -> Dict[str, Path]:
    """Run the RTF -> paragraph model -> RTF/plain-text pipeline."""
    rtf_path = Path(rtf_file).resolve()
    if not rtf_path.exists():
        raise FileNotFoundError(f"RTF file not found: {rtf_path}")

    LOGGER.info("Parsing %s", rtf_path.name)
    document = load_rtf_document(rtf_path, strict=strict)
    LOGGER.info(
        "Parsed %d paragraph(s), %d font(s), %d Scrivener style tag(s)",
        len(document.paragraphs),
        len(document.metadata.font_table),
        len(document.annotations),
    )

    if output_dir is None:
        output_dir = str(rtf_path.with_suffix(""))

    output_path = Path(output_dir).resolve()
    LOGGER.info("Writing outputs into %s", output_path)
    outputs = write_outputs(document, output_path, stem=rtf_path.stem)
    outputs["debug"] = DebugDumper(output_path / "debug").dump(document)
    return outputs


if __name__ == "__main__":  # pragma: no cover
    import argparse

    parser = argparse.ArgumentParser(description="Parse Scrivener RTF and write normalised RTF and plain text")
    parser.add_argument("rtf_file", help="Path to the input .rtf file")
    parser.add_argument("--output", help="Directory to write generated artifacts")
    parser.add_argument("--strict", action="store_true", help="Fail on malformed RTF instead of recovering")
    parser.add_argument("--verbose", action="store_true", help="Log skipped control words and fallbacks")

    args = parser.parse_args()
    set_verbosity(args.verbose)
    main(args.rtf_file, args.output, strict=args.strict)
