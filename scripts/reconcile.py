"""Operator-triggered photo sync: python -m scripts.reconcile <owner_id> [<owner_id> ...]"""

import argparse
import asyncio
import json
import logging

from tortoise import run_async

from pantry.config import load_settings
from pantry.core.container import build_container
from pantry.db import init_db
from pantry.models import Item, Profile, Recipe


async def _owners_with_local_assets():
    owners = set()
    for model in (Item, Recipe):
        owners.update(await model.filter(local_path__not_isnull=True).distinct().values_list("owner_id", flat=True))
    owners.update(await Profile.filter(local_path__not_isnull=True).values_list("id", flat=True))
    return sorted(owners)


async def main(owner_ids, timeout):
    settings = load_settings()
    await init_db(settings)
    container = build_container(settings)
    if not owner_ids:
        owner_ids = await _owners_with_local_assets()

    for owner_id in owner_ids:
        try:
            report = await asyncio.wait_for(container.sync.reconcile(owner_id), timeout=timeout)
        except asyncio.TimeoutError:
            logging.error("Reconcile for %s timed out after %ss; finished uploads are kept", owner_id, timeout)
            continue
        print(json.dumps(report.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    parser = argparse.ArgumentParser(description="Upload locally stored photos to the object store")
    parser.add_argument("owner_ids", nargs="*", help="owners to reconcile (default: every owner with local photos)")
    parser.add_argument("--timeout", type=float, default=600.0, help="per-owner timeout in seconds")
    args = parser.parse_args()
    run_async(main(args.owner_ids, args.timeout))
