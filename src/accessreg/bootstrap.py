"""
Access Registry Bootstrap CLI
=============================
Interactive first-run setup.  Creates the registry tables, deploys the
registry with its owner principal, and prints a bearer token for the owner.

Usage:
    python -m accessreg.bootstrap

The script does nothing if the registry has already been deployed.
"""

import sys

from accessreg.auth.security import create_access_token
from accessreg.core import errors
from accessreg.core.db import SessionLocal, init_db
from accessreg.core.registry import AccessRegistry, is_valid_principal
from accessreg.settings import settings
from accessreg.util.logging import setup_logging


def main() -> None:
    setup_logging()
    print()
    print("=" * 60)
    print("  Access Registry")
    print("  First-Run Bootstrap")
    print("=" * 60)
    print()

    # ------------------------------------------------------------------
    # [1/3] Create tables
    # ------------------------------------------------------------------
    print("[1/3] Creating registry tables ...")
    init_db()

    registry = AccessRegistry(SessionLocal)
    if registry.is_deployed():
        print(f"       - Registry already deployed (owner {registry.get_owner()}).")
        print("Bootstrap not required.")
        return

    # ------------------------------------------------------------------
    # [2/3] Prompt for the owner principal
    # ------------------------------------------------------------------
    print("[2/3] Choosing the registry owner ...")
    print()
    try:
        while True:
            default = settings.OWNER_PRINCIPAL
            prompt = f"  Owner principal [{default}]: " if default else "  Owner principal: "
            owner = input(prompt).strip() or default
            if not is_valid_principal(owner):
                print("  That is not a usable principal. Try again.")
                continue
            break
    except KeyboardInterrupt:
        print("\n\nBootstrap cancelled.")
        sys.exit(1)

    print()

    # ------------------------------------------------------------------
    # [3/3] Deploy
    # ------------------------------------------------------------------
    print("[3/3] Deploying registry ...")
    try:
        registry.deploy(owner)
    except errors.RegistryError as exc:
        print(f"\nERROR: {exc.message}")
        sys.exit(1)

    token = create_access_token({"sub": owner})

    print()
    print("=" * 60)
    print("  Bootstrap complete!")
    print(f"  Owner: {owner}")
    print(f"  Owner token (expires in {settings.JWT_EXPIRE_MINUTES} min):")
    print(f"  {token}")
    print("=" * 60)
    print()


if __name__ == "__main__":
    main()
