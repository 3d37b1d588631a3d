#!/usr/bin/env python3
"""Example usage of the cve-search heuristics."""

from cve_heuristics import (
    ComponentRecord,
    CveSearchApi,
    CveSearchApiError,
    CveSearchWrapper,
    NeedleGeneratorLevel,
    SearchConfig,
    SearchLevels,
    VendorIdentity,
    compose,
    flatten
)


def main():
    """Demonstrate how to use the search levels programmatically."""
    config = SearchConfig.from_env()

    # A level guessing nothing: vendor and product as free text
    vendor_and_name = NeedleGeneratorLevel(
        compose(lambda r: "cpe:2.3:.:", lambda r: (r.vendor and r.vendor.short_name) or "", lambda r: r.name),
        "vendor and name"
    )

    components = [
        ComponentRecord(name="zlib", version="1.2.11", cpe_id="cpe:2.3:a:zlib:zlib:1.2.11"),
        ComponentRecord(name="Tomcat", version="9.0.30",
                        vendor=VendorIdentity(full_name="Apache Software Foundation")),
        ComponentRecord(name="libfoo"),
    ]

    with CveSearchApi(config.host, timeout=config.timeout, max_retries=config.max_retries, verbose=True) as api:
        levels = SearchLevels(api, config.vendor_threshold, config.product_threshold, config.cutoff,
                              extra_levels=[vendor_and_name])
        wrapper = CveSearchWrapper(api, levels, verbose=True)

        for component in components:
            print("=" * 50)
            print(f"Component: {component.name} {component.version or ''}")
            print("=" * 50)

            try:
                for candidate in flatten(levels.apply(component)):
                    print(f"  {candidate.needle:<50} {candidate.description}")

                cves = wrapper.search_for_release(component)
                print(f"Found {len(cves)} CVEs")
                for cve in cves[:5]:
                    print(f"  - {cve.cve_id} ({cve.matched_by})")
            except CveSearchApiError as e:
                print(f"Error: {e}")


if __name__ == "__main__":
    main()
