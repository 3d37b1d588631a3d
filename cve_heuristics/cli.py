"""CLI interface for CVE candidate search."""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from tabulate import tabulate
from tqdm import tqdm

from . import __version__
from .api import CveSearchApi
from .config import SearchConfig
from .models import ComponentRecord, CveRecord, NeedleWithMeta, VendorIdentity
from .search_levels import SearchLevels
from .searcher import CveSearchWrapper


def _config_options(func):
    """Options shared by all commands that talk to cve-search."""
    options = [
        click.option("--host", help="Base URL of the cve-search instance (env: CVE_SEARCH_HOST)"),
        click.option("--vendor-threshold", type=int, help="Allowed distance above the best vendor guess"),
        click.option("--product-threshold", type=int, help="Allowed distance above the best product guess"),
        click.option("--cutoff", type=int, help="Maximum number of guesses per level"),
        click.option("--timeout", type=int, help="Request timeout in seconds"),
        click.option(
            "--output-format",
            type=click.Choice(["json", "pretty"], case_sensitive=False),
            default="json",
            help="Output format",
        ),
        click.option("--verbose", "-v", is_flag=True, help="Enable verbose output"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _component_options(func):
    """Arguments describing a single component."""
    options = [
        click.argument("name", type=str),
        click.option("--version", "component_version", help="Version of the component"),
        click.option("--vendor-short", help="Short name of the vendor"),
        click.option("--vendor-full", help="Full name of the vendor"),
        click.option("--cpe", help="CPE already recorded for the component"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(host, vendor_threshold, product_threshold, cutoff, timeout) -> SearchConfig:
    return SearchConfig.from_env(
        host=host,
        vendor_threshold=vendor_threshold,
        product_threshold=product_threshold,
        cutoff=cutoff,
        timeout=timeout,
    )


def _build_component(name: str, component_version: Optional[str], vendor_short: Optional[str],
                     vendor_full: Optional[str], cpe: Optional[str]) -> ComponentRecord:
    vendor = None
    if vendor_short is not None or vendor_full is not None:
        vendor = VendorIdentity(short_name=vendor_short, full_name=vendor_full)
    return ComponentRecord(name=name, version=component_version, vendor=vendor, cpe_id=cpe)


def _open_api(config: SearchConfig, verbose: bool) -> CveSearchApi:
    return CveSearchApi(config.host, timeout=config.timeout, max_retries=config.max_retries, verbose=verbose)


def _levels_to_dict(levels: List[List[NeedleWithMeta]]) -> List[Dict[str, Any]]:
    return [
        {"level": index, "candidates": [needle.to_dict() for needle in needles]}
        for index, needles in enumerate(levels, 1)
    ]


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """
    Find cve-search needles and CVEs for software components.

    Components without a recorded CPE are matched by guessing their
    cve-search vendor and product names.
    """


@main.command()
@_component_options
@_config_options
def candidates(name, component_version, vendor_short, vendor_full, cpe,
               host, vendor_threshold, product_threshold, cutoff, timeout, output_format, verbose) -> None:
    """Show the candidate needles of every search level for NAME."""
    try:
        config = _build_config(host, vendor_threshold, product_threshold, cutoff, timeout)
        record = _build_component(name, component_version, vendor_short, vendor_full, cpe)

        api = _open_api(config, verbose)
        try:
            levels = SearchLevels(api, config.vendor_threshold, config.product_threshold, config.cutoff)
            result = levels.apply(record)
        finally:
            api.close()

        if output_format == "json":
            click.echo(json.dumps({"component": record.to_dict(), "levels": _levels_to_dict(result)}, indent=2))
        else:
            _display_candidates(record, result)

    except Exception as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)


@main.command()
@_component_options
@_config_options
def search(name, component_version, vendor_short, vendor_full, cpe,
           host, vendor_threshold, product_threshold, cutoff, timeout, output_format, verbose) -> None:
    """Search the CVEs of NAME using the most trusted level with results."""
    try:
        config = _build_config(host, vendor_threshold, product_threshold, cutoff, timeout)
        record = _build_component(name, component_version, vendor_short, vendor_full, cpe)

        api = _open_api(config, verbose)
        try:
            levels = SearchLevels(api, config.vendor_threshold, config.product_threshold, config.cutoff)
            cves = CveSearchWrapper(api, levels, verbose=verbose).search_for_release(record)
        finally:
            api.close()

        if output_format == "json":
            click.echo(json.dumps({"component": record.to_dict(),
                                   "cves": [cve.to_dict() for cve in cves]}, indent=2))
        else:
            _display_cves(record, cves)

    except Exception as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)


@main.command()
@click.argument("vendor", type=str)
@click.argument("product", type=str)
@_config_options
def lookup(vendor, product, host, vendor_threshold, product_threshold, cutoff, timeout,
           output_format, verbose) -> None:
    """Search the CVEs of an exact cve-search VENDOR and PRODUCT pair, skipping all guessing."""
    try:
        config = _build_config(host, vendor_threshold, product_threshold, cutoff, timeout)

        api = _open_api(config, verbose)
        try:
            documents = api.search(vendor, product)
        finally:
            api.close()

        matched_by = f"{vendor}:{product}"
        cves = [CveRecord.from_json(document, matched_by=matched_by) for document in documents]

        if output_format == "json":
            click.echo(json.dumps({"vendor": vendor, "product": product,
                                   "cves": [cve.to_dict() for cve in cves]}, indent=2))
        else:
            _display_cves(ComponentRecord(name=matched_by), cves)

    except Exception as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)


@main.command()
@click.argument("cve_id", type=str)
@_config_options
def cve(cve_id, host, vendor_threshold, product_threshold, cutoff, timeout, output_format, verbose) -> None:
    """Show a single CVE as cve-search knows it."""
    try:
        config = _build_config(host, vendor_threshold, product_threshold, cutoff, timeout)

        api = _open_api(config, verbose)
        try:
            document = api.cve(cve_id)
        finally:
            api.close()

        if document is None:
            raise ValueError(f"CVE {cve_id.upper()} not found")
        record = CveRecord.from_json(document)

        if output_format == "json":
            click.echo(json.dumps(record.to_dict(), indent=2))
        else:
            _display_cve(record)

    except Exception as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)


@main.command()
@click.argument("components_file", type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path))
@_config_options
def batch(components_file: Path, host, vendor_threshold, product_threshold, cutoff, timeout,
          output_format, verbose) -> None:
    """
    Show candidate needles for every component in COMPONENTS_FILE.

    COMPONENTS_FILE is a JSON list of objects with the keys name, version,
    vendor ({"shortname", "fullname"}) and cpeid. A component whose lookup
    fails is reported with an error and the remaining ones are processed.
    """
    try:
        config = _build_config(host, vendor_threshold, product_threshold, cutoff, timeout)

        with open(components_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{components_file} must contain a JSON list of components")

        results = []
        api = _open_api(config, verbose)
        try:
            levels = SearchLevels(api, config.vendor_threshold, config.product_threshold, config.cutoff)
            for item in tqdm(data, desc="Components", disable=not verbose):
                entry: Dict[str, Any] = {"component": item}
                try:
                    if not isinstance(item, dict):
                        raise ValueError(f"Component must be a JSON object, got {item!r}")
                    record = ComponentRecord.from_dict(item)
                    entry["component"] = record.to_dict()
                    entry["levels"] = _levels_to_dict(levels.apply(record))
                except (IOError, ValueError) as e:
                    entry["error"] = str(e)
                results.append(entry)
        finally:
            api.close()

        if output_format == "json":
            click.echo(json.dumps(results, indent=2))
        else:
            _display_batch(results)

    except Exception as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)


def _display_candidates(record: ComponentRecord, levels: List[List[NeedleWithMeta]]) -> None:
    """Display candidate needles in pretty format."""
    click.echo(f"Candidates for {record.name} {record.version or ''}".rstrip())
    click.echo("=" * 60)

    rows = [
        [index, needle.needle, needle.description]
        for index, needles in enumerate(levels, 1)
        for needle in needles
    ]
    if rows:
        click.echo(tabulate(rows, headers=["Level", "Needle", "Description"], tablefmt="grid"))
    else:
        click.echo("No candidates found")


def _display_cves(record: ComponentRecord, cves: List[CveRecord]) -> None:
    """Display found CVEs in pretty format."""
    click.echo(f"CVEs for {record.name} {record.version or ''}".rstrip())
    click.echo("=" * 60)

    if not cves:
        click.echo("No CVEs found")
        return

    rows = []
    for cve in cves:
        summary = cve.summary[:60] + "..." if len(cve.summary) > 60 else cve.summary
        rows.append([cve.cve_id, cve.cvss if cve.cvss is not None else "N/A", cve.matched_by, summary])
    click.echo(tabulate(rows, headers=["CVE", "CVSS", "Matched By", "Summary"], tablefmt="grid"))
    if cves[0].used_needle:
        click.echo(f"\nNeedle: {cves[0].used_needle}")


def _display_cve(cve: CveRecord) -> None:
    """Display a single CVE in pretty format."""
    click.echo(f"{cve.cve_id}")
    click.echo("=" * 60)
    click.echo(f"CVSS: {cve.cvss if cve.cvss is not None else 'N/A'}")
    click.echo(f"Published: {cve.published or 'N/A'}")
    click.echo(f"Modified: {cve.modified or 'N/A'}")
    click.echo(f"\n{cve.summary}")

    if cve.vulnerable_configuration:
        click.echo(f"\nVulnerable configurations (showing first 10 of {len(cve.vulnerable_configuration)}):")
        for cpe in cve.vulnerable_configuration[:10]:
            click.echo(f"  - {cpe}")

    if cve.references:
        click.echo("\nReferences:")
        for reference in cve.references:
            click.echo(f"  - {reference}")


def _display_batch(results: List[Dict[str, Any]]) -> None:
    """Display batch results in pretty format."""
    rows = []
    for entry in results:
        component = entry["component"]
        name = component.get("name", "N/A") if isinstance(component, dict) else component
        if "error" in entry:
            rows.append([name, "-", f"Error: {entry['error']}", ""])
            continue
        for level in entry["levels"]:
            for candidate in level["candidates"]:
                rows.append([name, level["level"], candidate["needle"], candidate["description"]])
    click.echo(tabulate(rows, headers=["Component", "Level", "Needle", "Description"], tablefmt="grid"))


if __name__ == "__main__":
    main()
