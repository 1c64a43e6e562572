"""
Streamlit Frontend for Bookd

Quick calculators for gig workers:
1. Tax estimate for a gig
2. Trip mileage and the matching IRS deduction

DESIGN PRINCIPLES:
1. Always show a number
2. Say clearly when a mileage number is an estimate
3. Never guess a tax rate the user set on purpose (0% stays 0%)
"""

import asyncio

import streamlit as st
from pydantic import ValidationError

from bookd.audit import AuditLogger, create_correlation_id
from bookd.config import get_settings, validate_all_settings
from bookd.models.gig import Gig, User
from bookd.models.mileage import TripRequest
from bookd.services.mileage import (
    DistanceCache,
    GoogleMapsDistanceClient,
    MileageService,
)
from bookd.tax import calculate_gig_tax


st.set_page_config(
    page_title="Bookd",
    page_icon="🧾",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> tuple[DistanceCache, AuditLogger]:
    """
    Shared distance cache and audit logger (cached across reruns).

    The HTTP client is NOT shared: each Streamlit run gets its own
    event loop, so a client is created and closed per calculation.
    """
    mileage_settings = get_settings().mileage
    cache = DistanceCache(
        ttl_seconds=mileage_settings.cache_ttl_seconds,
        max_entries=mileage_settings.cache_max_entries,
    )
    return cache, AuditLogger()


async def _estimate_trip(request: TripRequest):
    cache, audit_logger = get_components()
    cache.sweep()
    service = MileageService(
        maps_client=GoogleMapsDistanceClient(),
        cache=cache,
        audit_logger=audit_logger,
    )
    try:
        return await service.calculate_trip(
            request, correlation_id=create_correlation_id()
        )
    finally:
        await service.stop()


def main():
    """Main application entry point."""
    st.sidebar.title("🧾 Bookd")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🧾 Tax Estimate", "🚗 Mileage", "⚙️ Settings"],
        index=0,
    )

    if page == "🧾 Tax Estimate":
        render_tax_page()
    elif page == "🚗 Mileage":
        render_mileage_page()
    elif page == "⚙️ Settings":
        render_settings_page()


def render_tax_page():
    """Render the gig tax estimator."""
    st.title("🧾 Tax Estimate")
    st.markdown("How much should you set aside for this gig?")

    tax_settings = get_settings().tax

    col1, col2 = st.columns(2)
    with col1:
        actual_pay = st.number_input("Pay received ($)", min_value=0.0, step=10.0, format="%.2f")
        tips = st.number_input("Tips ($)", min_value=0.0, step=5.0, format="%.2f")
    with col2:
        # A 0 user default means "not set", so it starts at 1
        default_rate = st.number_input(
            "Your default tax rate (%)",
            min_value=1,
            max_value=100,
            value=max(tax_settings.default_tax_percentage, 1),
            key="default_rate",
            help="For a 0% gig, set a rate for that gig instead",
        )
        use_gig_rate = st.checkbox(
            "Set a rate for this gig",
            help="Use 0% for cash / under-the-table pay",
        )
        gig_rate = st.number_input(
            "Gig tax rate (%)",
            min_value=0,
            max_value=100,
            value=0,
            disabled=not use_gig_rate,
        )

    gig = Gig(
        actual_pay=str(actual_pay),
        tips=str(tips),
        tax_percentage=gig_rate if use_gig_rate else None,
    )
    user = User(default_tax_percentage=default_rate)
    breakdown = calculate_gig_tax(gig, user, tax_settings.default_tax_percentage)

    st.markdown("---")
    c1, c2, c3 = st.columns(3)
    c1.metric("Income", f"${breakdown.income:,.2f}")
    c2.metric("Tax rate", f"{breakdown.tax_rate:g}%")
    c3.metric("Set aside", f"${breakdown.tax_amount:,.2f}")


def render_mileage_page():
    """Render the trip mileage calculator."""
    st.title("🚗 Mileage")
    st.markdown("Work out the miles for a gig and the deduction they're worth.")

    start = st.text_input("Start address", placeholder="123 Main St, Austin, TX")
    end = st.text_input("Gig address", placeholder="500 Congress Ave, Austin, TX")
    round_trip = st.checkbox("Round trip", value=True)

    if st.button("📏 Calculate", type="primary"):
        try:
            request = TripRequest(
                start_address=start,
                end_address=end,
                round_trip=round_trip,
            )
        except ValidationError as e:
            st.error(f"Please check the addresses: {e.errors()[0]['msg']}")
            return

        with st.spinner("Calculating distance..."):
            trip = run_async(_estimate_trip(request))

        if trip.status == "error":
            st.error(trip.error)
            return

        rate = get_settings().mileage.irs_rate_per_mile
        c1, c2, c3 = st.columns(3)
        c1.metric("Distance", f"{trip.distance_miles:.1f} mi")
        c2.metric("Travel time", f"~{trip.travel_time_minutes} min")
        c3.metric("Deduction", f"${trip.distance_miles * rate:,.2f}")

        if trip.estimated:
            st.warning(
                "⚠️ This is an estimate. Google Maps was unavailable, "
                "so please double-check the mileage before logging it."
            )
        elif trip.from_cache:
            st.caption("Served from recent lookups.")


def render_settings_page():
    """Render configuration status."""
    st.title("⚙️ Settings")

    results = validate_all_settings()
    for name in ("google_maps", "mileage", "tax", "backup", "app"):
        if results.get(name):
            st.success(f"✅ {name.replace('_', ' ').title()} configured")
        else:
            st.error(f"❌ {name.replace('_', ' ').title()}: {results.get(f'{name}_error')}")

    if not results.get("google_maps_api_key"):
        st.info(
            "No Google Maps API key set (GOOGLE_MAPS_API_KEY). "
            "Mileage will be estimated, not measured."
        )

    cache, _ = get_components()
    st.markdown("### Distance cache")
    st.json(cache.stats())


if __name__ == "__main__":
    main()
