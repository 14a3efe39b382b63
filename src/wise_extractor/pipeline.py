from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from .banks.wise import extract as extract_wise
from .errors import StatementParseError

EXIT_OK = 0
EXIT_INTERNAL = 1
EXIT_REJECTED = 2


def _setup_logging(verbose: bool, console: Console) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Wise statement extractor")
    parser.add_argument("file", help="Ruta al PDF (o al texto ya extraído)")
    parser.add_argument("--out", default="", help="Ruta de salida JSON (opcional)")
    parser.add_argument(
        "--no-reconcile",
        action="store_true",
        help="No verificar los saldos corridos que imprime Wise",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log de cada línea clasificada")
    args = parser.parse_args(argv)

    console = Console(stderr=True)
    _setup_logging(args.verbose, console)

    path = Path(args.file)
    if not path.exists():
        console.print(f"No existe el archivo: {path}", style="bold red", markup=False)
        return EXIT_INTERNAL

    console.print(f"Procesando: {path}", style="bold", markup=False)

    try:
        result = extract_wise(str(path), reconcile=False if args.no_reconcile else None)
    except StatementParseError as e:
        # error del documento (422): el mensaje se muestra tal cual
        console.print(f"Extracto rechazado: {e}", style="bold red", markup=False)
        return EXIT_REJECTED
    except Exception as e:
        logging.getLogger(__name__).exception("unexpected failure parsing %s", path)
        console.print(f"Error interno: {e}", style="bold red", markup=False)
        return EXIT_INTERNAL

    payload = result.to_payload()

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        console.print(f"OK -> {out_path}", style="bold green", markup=False)
    else:
        print(json.dumps(payload, ensure_ascii=False, indent=2))

    console.print(
        f"Transacciones detectadas: {len(payload['transactions'])} ({payload['currency']})",
        style="bold cyan",
    )
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
