# hostcert/commands/helpers.py

from __future__ import annotations

import argparse


def add_identity_arguments(parser: argparse.ArgumentParser, *, allow_all: bool = True) -> None:
    """
    Identity selection and per-certificate overrides shared by every command.
    """
    select = parser.add_mutually_exclusive_group(required=True)
    select.add_argument("-n", "--cn",
        help="x509 CN attribute (hostname) of the certificate")
    if allow_all:
        select.add_argument("--all",
            action="store_true",
            help="Act on every certificate listed in the config file")

    parser.add_argument("--alt",
        action="append",
        help="Alternate DNS name. May be given more than once.")

    subject = parser.add_argument_group("subject")
    subject.add_argument("--country", help="Two letter country code")
    subject.add_argument("--state", help="State or province")
    subject.add_argument("--city", help="Locality")
    subject.add_argument("--org", help="Organisation")
    subject.add_argument("--ou", help="Organisational unit")

    layout = parser.add_argument_group("layout")
    layout.add_argument("--key-dir", help="Private key directory")
    layout.add_argument("--cert-dir", help="Certificate directory (config, CSR under meta/)")
    layout.add_argument("--bundle-dir", help="Combined key and certificate directory")
    layout.add_argument("--owner", help="Owner of key and bundle files")
    layout.add_argument("--group", help="Group of key and bundle files")

    tool = parser.add_argument_group("openssl")
    tool.add_argument("--key-size", type=int, help="RSA key size in bits")
    tool.add_argument("--days", type=int, help="Self-signed certificate lifetime")
    tool.add_argument("--openssl-bin", help="Path or name of the openssl binary")
    tool.add_argument("--timeout", type=float, help="Seconds before an openssl call is abandoned")
    tool.add_argument("--template-dir", help="Directory holding a site-local openssl.cnf.j2")
