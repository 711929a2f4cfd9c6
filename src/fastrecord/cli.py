"""CLI implementation for fastrecord."""

import json
import sys
from pathlib import Path
from typing import Optional, TextIO
from urllib.parse import urlparse

import typer

from . import Reader
from .core.model import Result
from .core.util import record_asdict, result_asdict

app = typer.Typer(add_completion=False, help="Stream records out of files and URLs as JSON.")


def iter_sources(files: list[str]) -> list[str]:
    """Get list of sources from files argument or stdin."""
    if "-" in files:
        # stdin mode
        return [ln.strip() for ln in sys.stdin if ln.strip()]
    elif files:
        return list(files)
    return []


def _resolve(src: str) -> str:
    parsed_url = urlparse(src)
    if parsed_url.scheme and parsed_url.netloc:  # It's a URL
        return src
    return str(Path(src).resolve())


def _emit_records(reader: Reader, sink: Optional[TextIO], fields: Optional[set[str]],
                  limit: Optional[int]) -> int:
    """Pull up to `limit` records, writing each as a JSON line when `sink` is given."""
    count = 0
    while limit is None or count < limit:
        record = reader.next()
        if record is None:
            break
        if sink is not None:
            sink.write(json.dumps(record_asdict(record, fields_wanted=fields)))
            sink.write("\n")
        count += 1
    return count


def process_source(src: str, sink: TextIO, *, parser: Optional[str], fields: Optional[set[str]],
                   limit: Optional[int], summary: bool, decompress: bool) -> Result:
    """Decode one source, writing its records to `sink` unless only a summary is wanted."""
    reader = None
    try:
        reader = Reader(_resolve(src), parser, decompress=decompress)
        count = _emit_records(reader, None if summary else sink, fields, limit)
        data = dict(reader.metadata(), records=count)
        return Result(success=True, data=data, error=None, bytes_read=reader.bytes_read)
    except Exception as e:
        bytes_read = reader.bytes_read if reader is not None else 0
        return Result(success=False, data=None, error=str(e), bytes_read=bytes_read)
    finally:
        if reader is not None:
            reader.close()


@app.command()
def main(
    files: list[str] = typer.Argument(None, help="Files or URLs to process, or '-' for stdin"),
    parser: Optional[str] = typer.Option(None, "--parser", "-p", help="Parser name; detected when omitted"),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated subset of keys to emit"),
    limit: Optional[int] = typer.Option(None, "--limit", min=0, help="Stop after N records per source"),
    summary: bool = typer.Option(False, "--summary", help="Print one summary object per source instead of records"),
    no_decompress: bool = typer.Option(False, "--no-decompress", help="Do not unwrap gzip/bzip2/xz/zstd"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
):
    """Decode records from one or many local paths or URLs."""
    sel_fields = set(fields.split(",")) if fields else None
    sources = iter_sources(files or [])

    if not sources:
        typer.echo("No input files given.", err=True)
        raise typer.Exit(code=1)

    results: list[Result] = []
    # open output sink
    sink = open(output, "w", encoding="utf-8") if output else sys.stdout
    try:
        for src in sources:
            res = process_source(src, sink, parser=parser, fields=sel_fields, limit=limit,
                                 summary=summary, decompress=not no_decompress)
            results.append(res)
            if summary:
                sink.write(json.dumps(result_asdict(res)))
                sink.write("\n")
            elif not res.success:
                typer.echo(f"{src}: {res.error}", err=True)
    finally:
        if output:
            sink.close()

    # exit code
    if any(not r.success for r in results):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
