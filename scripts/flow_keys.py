#!/usr/bin/env python3
"""Ferramentas offline da chave RSA de WhatsApp Flows.

Uso:
    python scripts/flow_keys.py generate minha-senha --output-dir ./keys
    python scripts/flow_keys.py convert keys/whatsapp_private.pem minha-senha keys/flow_private.pem
    python scripts/flow_keys.py self-test --private keys/flow_private.pem --public keys/whatsapp_public.pem
    python scripts/flow_keys.py self-test --generate

A chave pública gerada deve ser cadastrada na Meta (WhatsApp Business).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from app.infra.crypto import (
    SELF_TEST_MESSAGE,
    ConfigurationError,
    KeySelfTestError,
    convert_private_key,
    generate_key_pair,
    self_test_key_pair,
)

PRIVATE_KEY_FILENAME = "whatsapp_private.pem"
PUBLIC_KEY_FILENAME = "whatsapp_public.pem"
SELF_TEST_PASSPHRASE = "test123"


def _escape_newlines(pem: str) -> str:
    return pem.strip().replace("\n", "\\n")


def _public_path_for(private_path: Path) -> Path:
    stem = private_path.stem.removesuffix("_private")
    return private_path.with_name(f"{stem}_public.pem")


def run_generate(passphrase: str, output_dir: Path) -> int:
    key_pair = generate_key_pair(passphrase)
    output_dir.mkdir(parents=True, exist_ok=True)
    private_path = output_dir / PRIVATE_KEY_FILENAME
    public_path = output_dir / PUBLIC_KEY_FILENAME
    private_path.write_text(key_pair.private_key_pem, encoding="utf-8")
    public_path.write_text(key_pair.public_key_pem, encoding="utf-8")

    print(f"Chave privada: {private_path}")
    print(f"Chave pública: {public_path}")
    print()
    print("# .env")
    print(f'WHATSAPP_FLOW_PRIVATE_KEY="{_escape_newlines(key_pair.private_key_pem)}"')
    print(f'WHATSAPP_FLOW_PASSPHRASE="{passphrase}"')
    print()
    print("# Chave pública para cadastrar na Meta")
    print(key_pair.public_key_pem)
    return 0


def run_convert(input_path: Path, passphrase: str, output_path: Path) -> int:
    converted = convert_private_key(input_path.read_text(encoding="utf-8"), passphrase)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    public_path = _public_path_for(output_path)
    output_path.write_text(converted.private_key_pem, encoding="utf-8")
    public_path.write_text(converted.public_key_pem, encoding="utf-8")

    print(f"Chave privada sem passphrase: {output_path}")
    print(f"Chave pública recalculada: {public_path}")
    print()
    print("# .env")
    print(f'WHATSAPP_FLOW_PRIVATE_KEY="{_escape_newlines(converted.private_key_pem)}"')
    print('WHATSAPP_FLOW_PASSPHRASE=""')
    return 0


def run_self_test(
    private_path: Path | None,
    public_path: Path | None,
    passphrase: str | None,
    *,
    generate: bool,
) -> int:
    if generate:
        key_pair = generate_key_pair(SELF_TEST_PASSPHRASE)
        private_pem = key_pair.private_key_pem
        public_pem = key_pair.public_key_pem
        passphrase = SELF_TEST_PASSPHRASE
    elif private_path is not None and public_path is not None:
        private_pem = private_path.read_text(encoding="utf-8")
        public_pem = public_path.read_text(encoding="utf-8")
    else:
        print("self-test exige --private e --public, ou --generate", file=sys.stderr)
        return 2

    self_test_key_pair(private_pem, public_pem, passphrase)
    print(f"Self-test OK: '{SELF_TEST_MESSAGE}' cifrada e decifrada com sucesso")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Gera par RSA 2048 com passphrase.")
    generate.add_argument("passphrase", help="Senha que cifra a chave privada.")
    generate.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Diretório de saída dos arquivos PEM.",
    )

    convert = subparsers.add_parser("convert", help="Remove a passphrase da chave privada.")
    convert.add_argument("input", type=Path, help="Chave privada cifrada (PEM).")
    convert.add_argument("passphrase", help="Passphrase atual da chave.")
    convert.add_argument("output", type=Path, help="Destino da chave PKCS8 sem cifra.")

    self_test = subparsers.add_parser("self-test", help="Valida o par com round-trip RSA-OAEP.")
    self_test.add_argument("--private", type=Path, default=None, help="Chave privada (PEM).")
    self_test.add_argument("--public", type=Path, default=None, help="Chave pública (PEM).")
    self_test.add_argument("--passphrase", default=None, help="Passphrase da chave privada.")
    self_test.add_argument(
        "--generate",
        action="store_true",
        help="Gera um par descartável e testa o round-trip.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "generate":
            return run_generate(args.passphrase, args.output_dir)
        if args.command == "convert":
            return run_convert(args.input, args.passphrase, args.output)
        return run_self_test(
            args.private,
            args.public,
            args.passphrase,
            generate=args.generate,
        )
    except (ConfigurationError, KeySelfTestError, ValueError, OSError) as exc:
        print(f"Erro: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
