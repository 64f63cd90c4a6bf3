"""
Solar Production Estimator
Streamlit application for sizing a solar system and estimating its payback.
"""

import logging

import streamlit as st
import plotly.graph_objects as go

from solar_estimator import (
    ApiKeys,
    EstimationRequest,
    default_collaborators,
    estimate_solar,
    load_api_keys
)
from solar_estimator.report import (
    build_mailto_link,
    climate_frame,
    incentive_rows,
    monthly_production_frame,
    summary_rows
)

logging.basicConfig(level=logging.INFO)

# Page configuration
st.set_page_config(
    page_title="Solar Production Estimator",
    page_icon="☀️",
    layout="centered"
)

STEPS = ["1. Location", "2. System Details", "3. Review"]


def get_secret(name: str):
    """Get a key from Streamlit secrets, or None if it isn't there."""
    try:
        return st.secrets[name]
    except (KeyError, FileNotFoundError):
        return None


def get_api_keys() -> ApiKeys:
    """API keys from Streamlit secrets first, then environment variables."""
    env_keys = load_api_keys()
    keys = ApiKeys(
        nrel=get_secret("NREL_API_KEY") or env_keys.nrel,
        openweather=get_secret("OPENWEATHER_API_KEY") or env_keys.openweather
    )
    missing = keys.missing()
    if missing:
        st.error(
            f"API key is not available ({', '.join(missing)}). Add it to "
            "`.streamlit/secrets.toml` or set it as an environment variable."
        )
        st.stop()
    return keys


def initialize_session_state():
    """Initialize session state variables."""
    defaults = {
        'step': 1,
        'address': '',
        'annual_consumption_kwh': 10000.0,
        'roof_area_m2': 50.0,
        'azimuth': 180,
        'tilt': 20,
        'outcome': None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def render_step_indicator():
    """Render the step progress indicator."""
    cols = st.columns(len(STEPS))
    for i, (col, step_name) in enumerate(zip(cols, STEPS), 1):
        if i < st.session_state.step:
            col.markdown(f"✅ **{step_name}**")
        elif i == st.session_state.step:
            col.markdown(f"🔵 **{step_name}**")
        else:
            col.markdown(f"⚪ {step_name}")

    st.divider()


def render_navigation(can_continue: bool = True):
    col1, _, col3 = st.columns([1, 1, 1])
    with col1:
        if st.session_state.step > 1 and st.button("← Previous", use_container_width=True):
            st.session_state.step -= 1
            st.rerun()
    with col3:
        if st.session_state.step < len(STEPS):
            if st.button("Next →", type="primary", use_container_width=True, disabled=not can_continue):
                st.session_state.step += 1
                st.rerun()


def step1_location():
    """Step 1: Building address."""
    st.header("📍 Step 1: Location")

    st.session_state.address = st.text_input(
        "Building Address",
        value=st.session_state.address,
        placeholder="123 Main Street, Sacramento, CA",
        help="Enter the full address of the building where you want to install solar panels"
    )

    render_navigation(can_continue=bool(st.session_state.address.strip()))


def step2_system_details():
    """Step 2: Consumption and roof geometry."""
    st.header("☀️ Step 2: System Details")

    st.session_state.annual_consumption_kwh = st.number_input(
        "Annual Energy Consumption (kWh)",
        min_value=1.0,
        max_value=200000.0,
        value=float(st.session_state.annual_consumption_kwh),
        step=500.0,
        help="Enter your total annual energy consumption in kilowatt-hours"
    )

    st.session_state.roof_area_m2 = st.number_input(
        "Roof Area (m²)",
        min_value=1.0,
        max_value=5000.0,
        value=float(st.session_state.roof_area_m2),
        step=5.0,
        help="Enter the total area of your roof in square meters"
    )

    st.session_state.azimuth = st.slider(
        "Roof Orientation (degrees)",
        min_value=0,
        max_value=359,
        value=int(st.session_state.azimuth),
        help="Direction panels face (0° = North, 90° = East, 180° = South, 270° = West)"
    )

    st.session_state.tilt = st.slider(
        "Roof Tilt (degrees)",
        min_value=0,
        max_value=90,
        value=int(st.session_state.tilt),
        help="Angle of your roof from horizontal (flat = 0°, vertical = 90°)"
    )

    render_navigation()


def step3_review():
    """Step 3: Review inputs and run the estimate."""
    st.header("📝 Step 3: Review Your Inputs")

    st.markdown(f"**Address:** {st.session_state.address}")
    st.markdown(f"**Annual Energy Consumption:** {st.session_state.annual_consumption_kwh:,.0f} kWh")
    st.markdown(f"**Roof Area:** {st.session_state.roof_area_m2:,.0f} m²")
    st.markdown(f"**Roof Orientation:** {st.session_state.azimuth}°")
    st.markdown(f"**Roof Tilt:** {st.session_state.tilt}°")

    render_navigation()

    if st.button("☀️ Get Solar Estimate", type="primary", use_container_width=True):
        request = EstimationRequest(
            address=st.session_state.address,
            annual_consumption_kwh=st.session_state.annual_consumption_kwh,
            tilt_degrees=st.session_state.tilt,
            azimuth_degrees=st.session_state.azimuth,
            roof_area_m2=st.session_state.roof_area_m2
        )
        with st.spinner("Estimating solar production..."):
            st.session_state.outcome = estimate_solar(
                request,
                default_collaborators(get_api_keys())
            )

    outcome = st.session_state.outcome
    if outcome is None:
        return
    if not outcome.succeeded:
        st.error(str(outcome.error) or "Failed to estimate solar production. Please try again.")
        return

    render_results(outcome.estimate)


def render_results(estimate):
    """Results dashboard."""
    st.divider()
    st.subheader("📊 Solar Estimation Results")

    st.metric(
        "Estimated Annual Solar Production",
        f"{estimate.production.annual_kwh:,.0f} kWh",
        help="This is the total amount of electricity your solar panels are expected to generate in a year"
    )

    production = monthly_production_frame(estimate.production)
    fig = go.Figure(go.Bar(
        x=production['month'],
        y=production['production_kwh'],
        name='Monthly Production (kWh)',
        marker_color='#8884d8'
    ))
    fig.update_layout(yaxis_title="kWh", height=300, margin=dict(l=0, r=0, t=20, b=0))
    st.plotly_chart(fig, use_container_width=True)

    location = estimate.location
    st.markdown("#### Location Map")
    fig = go.Figure(go.Scattermapbox(
        lat=[location.latitude],
        lon=[location.longitude],
        mode='markers',
        marker=dict(size=14, color='red'),
        text=[location.display_name or estimate.request.address]
    ))
    fig.update_layout(
        mapbox=dict(
            style="open-street-map",
            center=dict(lat=location.latitude, lon=location.longitude),
            zoom=13
        ),
        margin=dict(l=0, r=0, t=0, b=0),
        height=300
    )
    st.plotly_chart(fig, use_container_width=True)

    if estimate.current_weather.available:
        weather = estimate.current_weather.value
        st.markdown("#### Current Weather Conditions")
        col1, col2, col3 = st.columns(3)
        col1.metric("Temperature", f"{weather.temperature_c:.1f} °C")
        col2.metric("Conditions", weather.condition_text)
        col3.metric("Cloud Cover", f"{weather.cloud_cover_pct:.0f}%")

    st.markdown("#### System Recommendations and Cost Analysis")
    for label, value in summary_rows(estimate):
        st.markdown(f"- **{label}:** {value}")

    incentives = incentive_rows(estimate)
    if incentives:
        st.markdown("#### Available Incentives")
        for description, amount in incentives:
            st.markdown(f"- {description}: {amount}")

    summaries = estimate.monthly_climate
    if summaries is not None:
        st.markdown("#### Historical Weather Data")
        climate = climate_frame(summaries)
        fig = go.Figure()
        fig.add_trace(go.Scatter(
            x=climate['month'], y=climate['temperature_c'],
            mode='lines+markers', name='Temperature (°C)', line=dict(color='#8884d8')
        ))
        fig.add_trace(go.Scatter(
            x=climate['month'], y=climate['uv_index'],
            mode='lines+markers', name='Solar Radiation (UV Index)',
            line=dict(color='#82ca9d'), yaxis='y2'
        ))
        fig.update_layout(
            yaxis=dict(title="Temperature (°C)"),
            yaxis2=dict(title="UV Index", overlaying='y', side='right'),
            hovermode='x unified',
            height=300
        )
        st.plotly_chart(fig, use_container_width=True)

    st.link_button("📧 Share via Email", build_mailto_link(estimate))


def main():
    """Main application entry point."""
    initialize_session_state()

    with st.sidebar:
        st.title("☀️ Solar Estimator")
        st.markdown("""
        This tool helps you estimate:
        - The system size you need
        - Expected annual and monthly production
        - Installation cost, incentives and payback period

        **Powered by:**
        - OpenStreetMap Nominatim
        - NREL PVWatts
        - OpenWeather
        """)

        st.divider()
        if st.button("🔄 Start New Estimate", use_container_width=True):
            for key in list(st.session_state.keys()):
                del st.session_state[key]
            st.rerun()

    st.title("☀️ Solar Production Estimator")

    render_step_indicator()

    if st.session_state.step == 1:
        step1_location()
    elif st.session_state.step == 2:
        step2_system_details()
    elif st.session_state.step == 3:
        step3_review()


if __name__ == "__main__":
    main()
