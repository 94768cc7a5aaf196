"""
Streamlit UI — Smart Soil Health Monitor.
Tabs: record readings (single or multi-location), dashboard with period summaries,
recommendations for a reading, weather and field tips, PDF report, locations.
Run with: streamlit run app.py
"""

import sys
from pathlib import Path

import pandas as pd
import streamlit as st

PROJECT_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(PROJECT_ROOT))

from soil_monitor.config import (
    AGGREGATION_TYPES,
    CACHE_KEY_LOCATION,
    CACHE_KEY_WEATHER,
    DATABASE_PATH,
    DEFAULT_AGGREGATION,
    DEFAULT_BATCH_LOCATIONS,
    DEFAULT_USER_ID,
    INPUT_LIMITS,
    MAX_BATCH_LOCATIONS,
    MIN_BATCH_LOCATIONS,
    PARAMETER_UNITS,
    READINGS_LIMIT,
    ensure_dirs,
)
from soil_monitor.dashboard import compute_averages, load_dashboard, readings_frame
from soil_monitor.exceptions import SoilMonitorError, StoreError
from soil_monitor.local_cache import LocalCache
from soil_monitor.plant_profiles import PLANT_PROFILES, PLANT_TYPES
from soil_monitor.readings import clamp_batch_size, form_default, record_reading, submit_batch
from soil_monitor.report import build_report, report_filename
from soil_monitor.soil_health import GENERAL_TIPS, evaluate_reading, suggest_crops
from soil_monitor.store import SoilStore
from soil_monitor.weather import farming_tips, fetch_weather

OTHER_PLANT = "other"
PLANT_OPTIONS = PLANT_TYPES + [OTHER_PLANT]
_PRIORITY_ICON = {"high": "🔴", "medium": "🟡", "low": "🟢"}


@st.cache_resource
def get_store() -> SoilStore:
    return SoilStore(DATABASE_PATH)


@st.cache_resource
def get_cache() -> LocalCache:
    return LocalCache()


def _plant_name(key: str) -> str:
    profile = PLANT_PROFILES.get(key)
    return profile["label"] if profile else key.capitalize()


def _user_id() -> str:
    return st.session_state.get("user_id", DEFAULT_USER_ID)


# ---------------------------------------------------------------------------
# Light agricultural theme
# ---------------------------------------------------------------------------

def apply_theme():
    st.markdown("""
    <style>
    .stApp { background: linear-gradient(180deg, #f6fbf3 0%, #eef6ea 50%, #f6fbf3 100%); }
    .main .block-container { padding-top: 1.5rem; }
    h1, h2, h3 { color: #2e7d32 !important; }
    div[data-testid="stExpander"] { background: #ffffff; border-radius: 8px; border: 1px solid #c5d6c0; }
    .stButton > button { background: #2e7d32 !important; color: white !important; border-radius: 8px; }
    .stButton > button:hover { background: #388e3c !important; }
    [data-testid="stSidebar"] { background: #e8f3e3; }
    </style>
    """, unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Record readings
# ---------------------------------------------------------------------------

def _render_single_form(store: SoilStore, user_id: str):
    locations = store.get_locations(user_id)
    if not locations:
        st.info("Add a location in the **Locations** tab before recording a single reading, "
                "or use the multi-location form below.")
        return

    with st.form("single_reading", clear_on_submit=True):
        names = {loc.id: loc.name for loc in locations}
        location_id = st.selectbox("Location", options=list(names), format_func=names.get)
        c1, c2, c3, c4 = st.columns(4)
        nitrogen = c1.number_input(f"Nitrogen ({PARAMETER_UNITS['nitrogen']})",
                                   *INPUT_LIMITS["nitrogen"], value=None, step=0.1)
        ph = c2.number_input("pH", *INPUT_LIMITS["ph"], value=None, step=0.1)
        moisture = c3.number_input("Moisture (%)", *INPUT_LIMITS["moisture"], value=None, step=1.0)
        temperature = c4.number_input("Temperature (°C, optional)", value=None, step=0.5)
        plant = st.selectbox("Plant / crop", options=[""] + PLANT_OPTIONS,
                             format_func=lambda k: "— Select plant —" if not k else _plant_name(k))
        submitted = st.form_submit_button("Save reading", type="primary")

    if submitted:
        try:
            record_reading(store, user_id, location_id, nitrogen, ph, moisture, plant,
                           temperature=temperature)
        except SoilMonitorError as exc:
            st.error(str(exc))
            return
        st.success("Reading saved.")
        st.session_state["last_reading"] = {
            "nitrogen": nitrogen, "ph": ph, "moisture": moisture, "plant_type": plant,
        }


def _render_batch_form(store: SoilStore, user_id: str):
    count = clamp_batch_size(st.number_input(
        "Number of sampling spots",
        min_value=MIN_BATCH_LOCATIONS,
        max_value=MAX_BATCH_LOCATIONS,
        value=DEFAULT_BATCH_LOCATIONS,
        step=1,
    ))
    with st.form("batch_reading"):
        rows = []
        for i in range(count):
            st.markdown(f"**Location {i + 1}**")
            c1, c2, c3, c4, c5 = st.columns(5)
            rows.append({
                "nitrogen": c1.number_input("Nitrogen", *INPUT_LIMITS["nitrogen"], value=None,
                                            step=0.1, key=f"b_n_{i}"),
                "ph": c2.number_input("pH", *INPUT_LIMITS["ph"], value=None, step=0.1, key=f"b_ph_{i}"),
                "moisture": c3.number_input("Moisture", *INPUT_LIMITS["moisture"], value=None,
                                            step=1.0, key=f"b_m_{i}"),
                "temperature": c4.number_input("Temp (°C)", value=None, step=0.5, key=f"b_t_{i}"),
                "plant_type": c5.text_input("Plant / label", key=f"b_p_{i}"),
            })
        submitted = st.form_submit_button("Save all readings", type="primary")

    if submitted:
        try:
            result = submit_batch(store, user_id, rows)
        except SoilMonitorError as exc:
            st.error(str(exc))
            return
        avg = result["averages"]
        st.success(
            f"Saved {result['count']} reading(s) to **{result['location'].name}**. "
            f"Averages: N {avg['nitrogen']:.2f}, pH {avg['ph']:.2f}, "
            f"moisture {avg['moisture']:.1f}%, temperature {avg['temperature']:.1f}°C"
        )


def render_record_tab(store: SoilStore, user_id: str):
    st.subheader("Single reading")
    _render_single_form(store, user_id)
    st.divider()
    st.subheader("Multi-location reading")
    st.caption("Only rows with nitrogen, pH and moisture filled in are saved.")
    _render_batch_form(store, user_id)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def render_dashboard_tab(store: SoilStore, cache: LocalCache, user_id: str):
    c1, c2 = st.columns(2)
    aggregation_type = c1.selectbox(
        "Summary period", AGGREGATION_TYPES,
        index=AGGREGATION_TYPES.index(DEFAULT_AGGREGATION),
        format_func=str.capitalize,
    )
    try:
        locations = store.get_locations(user_id)
    except StoreError:
        locations = []
    names = {"": "All locations", **{loc.id: loc.name for loc in locations}}
    location_id = c2.selectbox("Location", list(names), format_func=names.get) or None

    try:
        with st.spinner("Updating summaries..."):
            data = load_dashboard(store, user_id, aggregation_type, location_id=location_id)
        cache.save_readings(data["records"])
    except StoreError as exc:
        st.error(f"Could not load soil data: {exc}")
        cached = cache.load_readings()
        if not cached:
            return
        st.warning(f"Showing {len(cached)} cached reading(s) from the last successful load.")
        df = readings_frame(cached)
        data = {"readings": df, "averages": compute_averages(df), "latest": df.head(5),
                "anomalies": [], "chart": pd.DataFrame()}

    df, avg = data["readings"], data["averages"]
    if df.empty:
        st.info("No readings yet. Record one in the **Record** tab.")
        return

    m1, m2, m3, m4, m5 = st.columns(5)
    m1.metric("Readings", avg["count"])
    m2.metric("Avg nitrogen", f"{avg['nitrogen']:.2f}")
    m3.metric("Avg pH", f"{avg['ph']:.2f}")
    m4.metric("Avg moisture", f"{avg['moisture']:.1f}%")
    m5.metric("Avg temperature", f"{avg['temperature']:.1f}°C")

    for message in data["anomalies"]:
        st.warning(message)

    chart = data["chart"]
    if not chart.empty:
        st.subheader(f"{aggregation_type.capitalize()} averages")
        st.line_chart(chart[["nitrogen", "ph"]])
        col1, col2 = st.columns(2)
        with col1:
            st.markdown("**Moisture**")
            st.area_chart(chart[["moisture"]])
        with col2:
            st.markdown("**Readings per period**")
            st.bar_chart(chart[["readings"]])
    else:
        st.caption("No summaries for the recent periods yet.")

    st.subheader("Latest readings")
    st.dataframe(data["latest"], use_container_width=True, hide_index=True)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

def render_recommendations_tab():
    last = st.session_state.get("last_reading") or {}
    c1, c2, c3, c4 = st.columns(4)
    nitrogen = c1.number_input("Nitrogen", *INPUT_LIMITS["nitrogen"],
                               value=form_default(last, "nitrogen", 3.0), step=0.1, key="r_n")
    ph = c2.number_input("pH", *INPUT_LIMITS["ph"], value=form_default(last, "ph", 6.5), step=0.1, key="r_ph")
    moisture = c3.number_input("Moisture (%)", *INPUT_LIMITS["moisture"],
                               value=form_default(last, "moisture", 60.0), step=1.0, key="r_m")
    plant_default = last.get("plant_type") if last.get("plant_type") in PLANT_OPTIONS else OTHER_PLANT
    plant = c4.selectbox("Plant / crop", PLANT_OPTIONS, index=PLANT_OPTIONS.index(plant_default),
                         format_func=_plant_name, key="r_plant")

    result = evaluate_reading(nitrogen, ph, moisture, plant)

    for alert in result["alerts"]:
        st.warning(alert)
    for positive in result["positives"]:
        st.success(positive)

    if result["recommendations"]:
        st.subheader("Recommendations")
        for rec in result["recommendations"]:
            with st.expander(f"{_PRIORITY_ICON.get(rec['priority'], '⚪')} {rec['title']}",
                             expanded=rec["priority"] == "high"):
                st.write(rec["description"])

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Suggested fertilizers**")
        for item in result["fertilizers"] or ["None needed"]:
            st.markdown(f"- {item}")
    with col2:
        st.markdown("**Pest and disease control**")
        for item in result["pesticides"] or ["None needed"]:
            st.markdown(f"- {item}")

    crops = suggest_crops(nitrogen, ph, moisture)
    if crops:
        st.subheader("Crops suited to this soil")
        st.markdown("\n".join(f"- {c}" for c in crops))

    with st.expander("General soil care tips"):
        for tip in GENERAL_TIPS:
            st.markdown(f"- {tip}")


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------

def render_weather_tab(cache: LocalCache):
    place = st.text_input("City or area", value=cache.get(CACHE_KEY_LOCATION, ""))
    if st.button("Get weather") and place:
        try:
            with st.spinner("Fetching weather..."):
                weather = fetch_weather(place)
            cache.set(CACHE_KEY_LOCATION, place)
            cache.set(CACHE_KEY_WEATHER, weather)
        except SoilMonitorError as exc:
            st.error(str(exc))

    weather = cache.get(CACHE_KEY_WEATHER)
    if not weather:
        st.info("Enter a location to see current conditions.")
        return

    st.subheader(weather.get("location", place))
    c1, c2, c3 = st.columns(3)
    c1.metric("Temperature", f"{weather['temperature']}°C")
    c2.metric("Humidity", f"{weather['humidity']}%")
    c3.metric("Conditions", weather["description"])
    tips = farming_tips(weather)
    if tips:
        st.markdown("**Farming tips**")
        for tip in tips:
            st.info(tip)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

def render_report_tab(store: SoilStore, user_id: str):
    st.write("Download a PDF with summary statistics, recent readings and an analysis "
             "of the latest reading.")
    try:
        readings = store.get_readings(user_id, limit=READINGS_LIMIT)
    except StoreError as exc:
        st.error(str(exc))
        return
    if not readings:
        st.info("No soil data available to generate a report.")
        return
    if st.button("Generate PDF report", type="primary"):
        with st.spinner("Building report..."):
            try:
                st.session_state["report_pdf"] = build_report(readings)
            except SoilMonitorError as exc:
                st.error(str(exc))
    pdf = st.session_state.get("report_pdf")
    if pdf:
        st.download_button(
            label="Download PDF",
            data=pdf,
            file_name=report_filename(),
            mime="application/pdf",
        )


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------

def render_locations_tab(store: SoilStore, user_id: str):
    with st.form("new_location", clear_on_submit=True):
        st.markdown("**Add location**")
        name = st.text_input("Name")
        c1, c2 = st.columns(2)
        latitude = c1.number_input("Latitude", -90.0, 90.0, value=None, format="%.6f")
        longitude = c2.number_input("Longitude", -180.0, 180.0, value=None, format="%.6f")
        description = st.text_area("Description")
        if st.form_submit_button("Add location", type="primary"):
            if not name.strip():
                st.error("Location name is required.")
            else:
                try:
                    store.create_location(user_id, name.strip(), latitude, longitude,
                                          description.strip() or None)
                    st.success(f"Location '{name.strip()}' added.")
                except SoilMonitorError as exc:
                    st.error(str(exc))

    locations = store.get_locations(user_id)
    if not locations:
        st.info("No locations yet.")
        return

    for loc in locations:
        with st.expander(f"📍 {loc.name}"):
            with st.form(f"edit_{loc.id}"):
                new_name = st.text_input("Name", value=loc.name)
                c1, c2 = st.columns(2)
                lat = c1.number_input("Latitude", -90.0, 90.0, value=loc.latitude, format="%.6f")
                lon = c2.number_input("Longitude", -180.0, 180.0, value=loc.longitude, format="%.6f")
                desc = st.text_area("Description", value=loc.description or "")
                save, delete = st.columns(2)
                if save.form_submit_button("Save changes"):
                    store.update_location(user_id, loc.id, name=new_name.strip() or loc.name,
                                          latitude=lat, longitude=lon, description=desc.strip() or None)
                    st.success("Location updated.")
                    st.rerun()
                if delete.form_submit_button("Delete (removes its readings)"):
                    store.delete_location(user_id, loc.id)
                    st.success(f"Deleted '{loc.name}'.")
                    st.rerun()


# ---------------------------------------------------------------------------
# Main app
# ---------------------------------------------------------------------------

def main():
    st.set_page_config(
        page_title="Smart Soil Health Monitor",
        page_icon="🌱",
        layout="wide",
    )
    apply_theme()
    ensure_dirs()

    st.title("🌱 Smart Soil Health Monitor")
    st.caption("Record soil readings • Track trends per period • Get plant-specific advice")

    try:
        store = get_store()
    except StoreError as exc:
        st.error(f"Soil data store unavailable: {exc}")
        st.stop()
    cache = get_cache()
    user_id = _user_id()

    record, dashboard, recs, weather, report, locations = st.tabs(
        ["Record", "Dashboard", "Recommendations", "Weather", "Report", "Locations"]
    )
    try:
        with record:
            render_record_tab(store, user_id)
        with dashboard:
            render_dashboard_tab(store, cache, user_id)
        with recs:
            render_recommendations_tab()
        with weather:
            render_weather_tab(cache)
        with report:
            render_report_tab(store, user_id)
        with locations:
            render_locations_tab(store, user_id)
    except SoilMonitorError as exc:
        st.error(str(exc))

    _render_sidebar(user_id)


def _render_sidebar(user_id: str):
    sb = st.sidebar
    sb.markdown("**Signed in as**")
    sb.code(user_id or "not signed in")
    sb.divider()
    sb.markdown("**Data store**")
    sb.caption(str(DATABASE_PATH))
    sb.divider()
    sb.caption("Smart Soil Health Monitoring System")


if __name__ == "__main__":
    main()
