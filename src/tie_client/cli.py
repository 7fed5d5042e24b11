"""CLI for TIE reputation operations."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from concurrent.futures import TimeoutError as FuturesTimeoutError
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .attributes import CertEnterpriseAttrib, FileEnterpriseAttrib
from .client import TieClient, wait_for_result
from .constants import (
    CertProvider,
    FileProvider,
    FileType,
    FirstRefProp,
    HashType,
    ReputationProp,
    TrustLevel,
)
from .decoders import to_aggregate_array, to_local_time_string, to_version_array, to_version_string
from .errors import TieError
from .settings import TieSettings

logger = logging.getLogger(__name__)

CATALOGS = {
    "trust-levels": TrustLevel,
    "file-types": FileType,
    "file-providers": FileProvider,
    "cert-providers": CertProvider,
    "hash-types": HashType,
}

# event name -> (add method, remove method) on TieClient
WATCHERS = {
    "detection": ("add_file_detection_callback", "remove_file_detection_callback"),
    "first-instance": ("add_file_first_instance_callback", "remove_file_first_instance_callback"),
    "file-rep-change": (
        "add_file_reputation_change_callback",
        "remove_file_reputation_change_callback",
    ),
    "cert-rep-change": (
        "add_certificate_reputation_change_callback",
        "remove_certificate_reputation_change_callback",
    ),
}


def _code_arg(catalog: Any, label: str):
    """argparse type accepting a catalog name (e.g. KNOWN_TRUSTED) or a number."""

    def parse(value: str) -> int:
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return int(catalog[value.upper().replace("-", "_")])
        except KeyError:
            raise argparse.ArgumentTypeError(f"unknown {label}: {value}")

    return parse


def _hashes_from_args(args: argparse.Namespace) -> dict[str, str]:
    hashes = {}
    for hash_type in HashType:
        value = getattr(args, hash_type.value, None)
        if value:
            hashes[hash_type.value] = value
    return hashes


@contextmanager
def _tie_session(args: argparse.Namespace) -> Iterator[TieClient]:
    """Connect to the DXL fabric and yield a TieClient."""
    settings: TieSettings = args.settings
    config_file = args.config or settings.dxl_config
    if not config_file:
        raise TieError("No DXL configuration file (use --config or TIE_DXL_CONFIG)")

    try:
        from .dxl import open_dxl_fabric
    except ImportError as e:
        raise TieError(f"DXL support is not installed (pip install tie-client[dxl]): {e}") from e

    with open_dxl_fabric(config_file) as fabric:
        yield TieClient(fabric, settings)


def _print_reputations(
    reputations: dict,
    providers: Any,
    enterprise_attrib: Any,
    output_format: str,
) -> None:
    if output_format == "json":
        print(json.dumps(reputations, indent=2))
        return

    if not reputations:
        print("No reputations found.")
        return

    for provider_id, reputation in reputations.items():
        trust_level = reputation.get(ReputationProp.TRUST_LEVEL)
        print(f"{providers.name_of(provider_id)} ({provider_id}):")
        print(f"  Trust level: {TrustLevel.name_of(trust_level)} ({trust_level})")
        create_date = reputation.get(ReputationProp.CREATE_DATE)
        if create_date:
            print(f"  Created:     {to_local_time_string(create_date)}")

        if provider_id == providers.ENTERPRISE:
            attribs = reputation.get(ReputationProp.ATTRIBUTES) or {}
            prevalence = attribs.get(enterprise_attrib.PREVALENCE)
            if prevalence:
                print(f"  Prevalence:  {prevalence}")
            first_contact = attribs.get(enterprise_attrib.FIRST_CONTACT)
            if first_contact:
                print(f"  First contact: {to_local_time_string(first_contact)}")


def _print_first_references(agents: list, output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(agents, indent=2))
        return

    if not agents:
        print("No systems have referenced this item.")
        return

    print(f"{'SYSTEM GUID':40s} {'FIRST REFERENCE':20s}")
    print("-" * 61)
    for agent in agents:
        date = agent.get(FirstRefProp.DATE)
        when = to_local_time_string(date) if date else ""
        print(f"{agent.get(FirstRefProp.SYSTEM_GUID, ''):40s} {when:20s}")


def cmd_decode(args: argparse.Namespace) -> int:
    """Decode an attribute value."""
    try:
        if args.kind == "version":
            if args.format == "json":
                print(json.dumps(to_version_array(args.value)))
            else:
                print(to_version_string(args.value))
        elif args.kind == "aggregate":
            values = to_aggregate_array(args.value)
            if args.format == "json":
                print(json.dumps(values))
            else:
                labels = ["File count", "Max trust level", "Min trust level",
                          "Last trust level", "Average trust level"]
                for label, value in zip(labels, values):
                    print(f"{label + ':':21s}{value}")
        elif args.kind == "time":
            print(to_local_time_string(args.value))
    except (ValueError, OverflowError, OSError) as e:
        print(f"Error: {e}")
        return 1

    return 0


def cmd_catalog(args: argparse.Namespace) -> int:
    """List the members of a constant catalog."""
    catalog = CATALOGS[args.catalog]
    if args.format == "json":
        print(json.dumps({member.name: member.value for member in catalog}, indent=2))
    else:
        for member in catalog:
            print(f"{member.name:25s} {member.value}")
    return 0


def cmd_file_rep(args: argparse.Namespace) -> int:
    """Look up file reputations."""
    hashes = _hashes_from_args(args)
    if not hashes:
        print("Error: at least one of --md5, --sha1, --sha256 is required")
        return 1

    with _tie_session(args) as tie:
        reputations = wait_for_result(
            tie.get_file_reputation, hashes, timeout=args.settings.request_timeout
        )
    _print_reputations(reputations, FileProvider, FileEnterpriseAttrib, args.format)
    return 0


def cmd_cert_rep(args: argparse.Namespace) -> int:
    """Look up certificate reputations."""
    with _tie_session(args) as tie:
        reputations = wait_for_result(
            tie.get_certificate_reputation,
            args.sha1,
            public_key_sha1=args.public_key_sha1,
            timeout=args.settings.request_timeout,
        )
    _print_reputations(reputations, CertProvider, CertEnterpriseAttrib, args.format)
    return 0


def cmd_file_refs(args: argparse.Namespace) -> int:
    """List systems that first referenced a file."""
    hashes = _hashes_from_args(args)
    if not hashes:
        print("Error: at least one of --md5, --sha1, --sha256 is required")
        return 1

    with _tie_session(args) as tie:
        agents = wait_for_result(
            tie.get_file_first_references,
            hashes,
            query_limit=args.limit,
            timeout=args.settings.request_timeout,
        )
    _print_first_references(agents, args.format)
    return 0


def cmd_cert_refs(args: argparse.Namespace) -> int:
    """List systems that first referenced a certificate."""
    with _tie_session(args) as tie:
        agents = wait_for_result(
            tie.get_certificate_first_references,
            args.sha1,
            public_key_sha1=args.public_key_sha1,
            query_limit=args.limit,
            timeout=args.settings.request_timeout,
        )
    _print_first_references(agents, args.format)
    return 0


def cmd_set_file_rep(args: argparse.Namespace) -> int:
    """Set the Enterprise reputation of a file."""
    hashes = _hashes_from_args(args)
    if not hashes:
        print("Error: at least one of --md5, --sha1, --sha256 is required")
        return 1

    with _tie_session(args) as tie:
        wait_for_result(
            tie.set_file_reputation,
            args.trust_level,
            hashes,
            filename=args.filename,
            comment=args.comment,
            timeout=args.settings.request_timeout,
        )
    print(f"Reputation set to {TrustLevel.name_of(args.trust_level)}")
    return 0


def cmd_set_cert_rep(args: argparse.Namespace) -> int:
    """Set the Enterprise reputation of a certificate."""
    with _tie_session(args) as tie:
        wait_for_result(
            tie.set_certificate_reputation,
            args.trust_level,
            args.sha1,
            public_key_sha1=args.public_key_sha1,
            comment=args.comment,
            timeout=args.settings.request_timeout,
        )
    print(f"Reputation set to {TrustLevel.name_of(args.trust_level)}")
    return 0


def cmd_report_external(args: argparse.Namespace) -> int:
    """Publish an external file reputation report."""
    hashes = _hashes_from_args(args)
    if not hashes:
        print("Error: at least one of --md5, --sha1, --sha256 is required")
        return 1

    with _tie_session(args) as tie:
        wait_for_result(
            tie.set_external_file_reputation,
            args.trust_level,
            hashes,
            args.file_type,
            filename=args.filename,
            comment=args.comment,
            provider_id=args.provider,
        )
    print("External reputation report sent")
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    """Print TIE events as they arrive."""
    add_name, remove_name = WATCHERS[args.event]

    def on_event(payload: dict, message: Any) -> None:
        print(f"Event on {message.destination_topic}:")
        print(json.dumps(payload, indent=2), flush=True)

    with _tie_session(args) as tie:
        getattr(tie, add_name)(on_event)
        print(f"Waiting for {args.event} events (Ctrl+C to stop)...", flush=True)
        try:
            threading.Event().wait()
        except KeyboardInterrupt:
            print("Stopped")
        finally:
            getattr(tie, remove_name)(on_event)

    return 0


def _add_hash_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--md5", help="MD5 hash (hex)")
    parser.add_argument("--sha1", help="SHA-1 hash (hex)")
    parser.add_argument("--sha256", help="SHA-256 hash (hex)")


def _add_format_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``tie`` command."""
    parser = argparse.ArgumentParser(
        prog="tie",
        description="TIE Client - File and certificate reputation tools",
    )
    parser.add_argument("-c", "--config", help="DXL client configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    trust_level = _code_arg(TrustLevel, "trust level")

    # Offline helpers
    decode_parser = subparsers.add_parser("decode", help="Decode a reputation attribute value")
    decode_parser.add_argument(
        "kind",
        choices=["version", "aggregate", "time"],
        help="Attribute encoding",
    )
    decode_parser.add_argument("value", help="Attribute value")
    _add_format_option(decode_parser)
    decode_parser.set_defaults(func=cmd_decode)

    catalog_parser = subparsers.add_parser("catalog", help="List constant values")
    catalog_parser.add_argument("catalog", choices=list(CATALOGS), help="Catalog to list")
    _add_format_option(catalog_parser)
    catalog_parser.set_defaults(func=cmd_catalog)

    # Reputation lookups
    file_rep_parser = subparsers.add_parser("file-rep", help="Look up file reputations")
    _add_hash_options(file_rep_parser)
    _add_format_option(file_rep_parser)
    file_rep_parser.set_defaults(func=cmd_file_rep)

    cert_rep_parser = subparsers.add_parser("cert-rep", help="Look up certificate reputations")
    cert_rep_parser.add_argument("sha1", help="SHA-1 of the certificate (hex)")
    cert_rep_parser.add_argument("--public-key-sha1", help="SHA-1 of the public key (hex)")
    _add_format_option(cert_rep_parser)
    cert_rep_parser.set_defaults(func=cmd_cert_rep)

    file_refs_parser = subparsers.add_parser("file-refs", help="Systems that referenced a file")
    _add_hash_options(file_refs_parser)
    file_refs_parser.add_argument("--limit", type=int, help="Maximum systems to return")
    _add_format_option(file_refs_parser)
    file_refs_parser.set_defaults(func=cmd_file_refs)

    cert_refs_parser = subparsers.add_parser(
        "cert-refs", help="Systems that referenced a certificate"
    )
    cert_refs_parser.add_argument("sha1", help="SHA-1 of the certificate (hex)")
    cert_refs_parser.add_argument("--public-key-sha1", help="SHA-1 of the public key (hex)")
    cert_refs_parser.add_argument("--limit", type=int, help="Maximum systems to return")
    _add_format_option(cert_refs_parser)
    cert_refs_parser.set_defaults(func=cmd_cert_refs)

    # Reputation updates
    set_file_parser = subparsers.add_parser("set-file-rep", help="Set a file's Enterprise reputation")
    set_file_parser.add_argument("trust_level", type=trust_level, help="Trust level name or value")
    _add_hash_options(set_file_parser)
    set_file_parser.add_argument("--filename", default="", help="File name")
    set_file_parser.add_argument("--comment", default="", help="Comment")
    set_file_parser.set_defaults(func=cmd_set_file_rep)

    set_cert_parser = subparsers.add_parser(
        "set-cert-rep", help="Set a certificate's Enterprise reputation"
    )
    set_cert_parser.add_argument("trust_level", type=trust_level, help="Trust level name or value")
    set_cert_parser.add_argument("sha1", help="SHA-1 of the certificate (hex)")
    set_cert_parser.add_argument("--public-key-sha1", help="SHA-1 of the public key (hex)")
    set_cert_parser.add_argument("--comment", default="", help="Comment")
    set_cert_parser.set_defaults(func=cmd_set_cert_rep)

    external_parser = subparsers.add_parser(
        "report-external", help="Report a file reputation from an external provider"
    )
    external_parser.add_argument("trust_level", type=trust_level, help="Trust level name or value")
    external_parser.add_argument(
        "--file-type",
        type=_code_arg(FileType, "file type"),
        required=True,
        help="File type name or value (e.g. PEEXE)",
    )
    _add_hash_options(external_parser)
    external_parser.add_argument("--filename", default="", help="File name")
    external_parser.add_argument("--comment", default="", help="Comment")
    external_parser.add_argument(
        "--provider",
        type=int,
        default=int(FileProvider.EXTERNAL),
        help="Provider id reported with the reputation",
    )
    external_parser.set_defaults(func=cmd_report_external)

    # Events
    watch_parser = subparsers.add_parser("watch", help="Print TIE events as they arrive")
    watch_parser.add_argument("event", choices=list(WATCHERS), help="Event type")
    watch_parser.set_defaults(func=cmd_watch)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if not args.command:
        parser.print_help()
        return 0

    args.settings = TieSettings.load()
    try:
        result: int = args.func(args)
    except TieError as e:
        print(f"Error: {e}")
        return 1
    except FuturesTimeoutError:
        print("Error: timed out waiting for the TIE service")
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
