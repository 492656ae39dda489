import json
import time

import streamlit as st
from bokeh.models import CustomJS
from bokeh.models.widgets import Button
from streamlit_bokeh_events import streamlit_bokeh_events

from coordinator import InputCoordinator, Severity, Source
from location import BrowserLocationProvider
from settings_store import configure_logging, load_settings, save_settings
from utils.qr_generator import generate_qr, label_filename


MANUAL_FIELDS = {
    "street": "Street Address",
    "city": "City",
    "region": "State/Region",
}
LOCATION_EVENT = "GET_LOCATION"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class CodeSlot:
    """Stable container handle for the QR renderer.

    Streamlit rebuilds its placeholders on every rerun; the slot keeps the
    last image and repaints it into whichever placeholder is bound.
    """

    def __init__(self):
        self.target = None
        self.data = None
        self.width = None

    def bind(self, target):
        self.target = target
        self._flush()

    def image(self, data, width=None):
        self.data = data
        self.width = width
        self._flush()

    def _flush(self):
        if self.target is not None and self.data is not None:
            self.target.image(self.data, width=self.width)


class StreamlitPresenter:
    def __init__(self):
        self.message = None
        self.loading = False
        self.location_text = ""
        self.slot = CodeSlot()
        self.fade_pending = False

    def show_message(self, message):
        self.message = message

    def set_loading(self, loading):
        self.loading = loading

    def show_location(self, text):
        self.location_text = text

    def code_container(self):
        return self.slot

    def play_transition(self):
        self.fade_pending = True


def make_provider(settings):
    if settings.get("geolocation_enabled", True):
        return BrowserLocationProvider()
    return None


def get_coordinator(settings):
    if "coordinator" not in st.session_state:
        coordinator = InputCoordinator(StreamlitPresenter(), provider=make_provider(settings))
        coordinator.start()
        st.session_state["coordinator"] = coordinator
    return st.session_state["coordinator"]


def on_manual_change(field):
    coordinator = st.session_state["coordinator"]
    coordinator.edit_address(**{field: st.session_state[f"manual_{field}"]})


def code_label(coordinator):
    if coordinator.last_source is Source.CURRENT_LOCATION:
        return coordinator.presenter.location_text
    return coordinator.address.joined()


def apply_global_styles():
    st.markdown(
        """
        <style>
        section.main > div.block-container {
            max-width: 640px;
            padding-top: 1rem;
        }
        @keyframes qr-fade-in {
            from { opacity: 0; }
            to { opacity: 1; }
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def apply_fade_in():
    st.markdown(
        """
        <style>
        div[data-testid="stImage"] img { animation: qr-fade-in 0.6s ease-in; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def show_message(box, message):
    if message is None:
        box.empty()
    elif message.severity is Severity.ERROR:
        box.error(message.text)
    elif message.severity is Severity.SUCCESS:
        box.success(message.text)
    else:
        box.info(message.text)


def browser_location_button(options):
    """Render the browser-side button that runs the geolocation request."""
    button = Button(label="Share My Location", button_type="primary")
    button.js_on_event("button_click", CustomJS(code="""
        const nonce = Date.now();
        const send = (detail) => {
            document.dispatchEvent(new CustomEvent("%s", {detail: detail}));
        };
        if (!navigator.geolocation) {
            send({unsupported: true, nonce: nonce});
        } else {
            navigator.geolocation.getCurrentPosition(
                (loc) => send({lat: loc.coords.latitude, lon: loc.coords.longitude, nonce: nonce}),
                (err) => send({code: err.code, nonce: nonce}),
                {enableHighAccuracy: %s, timeout: %d, maximumAge: %d}
            );
        }
        """ % (
        LOCATION_EVENT,
        json.dumps(options.high_accuracy),
        options.timeout_ms,
        options.cache_max_age_ms,
    )))

    return streamlit_bokeh_events(
        button,
        events=LOCATION_EVENT,
        key="get_location",
        refresh_on_update=False,
        override_height=75,
        debounce_time=0,
    )


def show_generator(coordinator, settings):
    presenter = coordinator.presenter

    message_box = st.empty()

    st.subheader("Use Current Location")
    st.text_input(
        "Geolocation",
        value=presenter.location_text,
        placeholder="Coordinates will appear here",
        disabled=True,
    )
    label = "Fetching..." if presenter.loading else "Get My Current Location"
    if st.button(label, disabled=presenter.loading, use_container_width=True):
        coordinator.request_location()
        st.rerun()

    provider = coordinator.provider
    if presenter.loading:
        if isinstance(provider, BrowserLocationProvider) and provider.pending:
            with st.spinner("Waiting for your browser to share its location..."):
                result = browser_location_button(provider.options)
            if result and LOCATION_EVENT in result:
                if provider.deliver(result[LOCATION_EVENT]):
                    st.rerun()
        if st.button("Cancel"):
            coordinator.cancel_location_request()
            st.rerun()

    st.subheader("Enter Address Manually")
    for field, field_label in MANUAL_FIELDS.items():
        key = f"manual_{field}"
        st.session_state[key] = getattr(coordinator.address, field)
        st.text_input(field_label, key=key, on_change=on_manual_change, args=(field,))

    generate_clicked = st.button("Generate QR Code", type="primary", use_container_width=True)
    output = st.empty()
    presenter.slot.bind(output)

    if generate_clicked:
        coordinator.generate()

    if presenter.fade_pending:
        apply_fade_in()
        presenter.fade_pending = False

    show_message(message_box, presenter.message)

    renderer = coordinator.renderer
    if renderer is not None:
        col1, col2 = st.columns(2)
        with col1:
            st.download_button(
                "Download PNG",
                data=renderer.to_png(),
                file_name="location_qr.png",
                mime="image/png",
            )
        with col2:
            if st.button("Save Labelled Copy"):
                label = code_label(coordinator)
                path = generate_qr(
                    renderer.text,
                    label_filename(label, str(int(time.time()))),
                    label=label,
                    directory=settings.get("qr_save_dir", "qr_codes"),
                )
                st.success(f"Saved to {path}")
        st.caption(renderer.text)


def show_settings(coordinator, settings):
    st.header("Settings")

    with st.form("settings_form"):
        geolocation_enabled = st.checkbox(
            "Allow browser geolocation",
            value=settings.get("geolocation_enabled", True),
        )
        qr_save_dir = st.text_input(
            "Folder for labelled QR copies",
            value=str(settings.get("qr_save_dir") or "qr_codes"),
        )
        flask_port = st.number_input(
            "Flask Port",
            min_value=1,
            max_value=65535,
            value=int(settings.get("flask_port", 5000)),
            step=1,
        )
        current_level = str(settings.get("log_level", "INFO")).upper()
        log_level = st.selectbox(
            "Log level",
            LOG_LEVELS,
            index=LOG_LEVELS.index(current_level) if current_level in LOG_LEVELS else 1,
        )
        submitted = st.form_submit_button("Save Settings")

    if submitted:
        updated = {
            **settings,
            "geolocation_enabled": geolocation_enabled,
            "qr_save_dir": qr_save_dir.strip() or "qr_codes",
            "flask_port": int(flask_port),
            "log_level": log_level,
        }
        save_settings(updated)
        if geolocation_enabled != settings.get("geolocation_enabled", True):
            coordinator.set_provider(make_provider(updated))
        st.success("Settings saved.")
        st.rerun()


settings = load_settings()
configure_logging(settings)

st.set_page_config(
    page_title="Location QR Generator",
    page_icon="📍",
    layout="centered",
)
apply_global_styles()
st.title("📍 Location QR Generator")

coordinator = get_coordinator(settings)

menu = st.sidebar.selectbox("Menu", ["Generate QR Code", "Settings"])

if menu == "Generate QR Code":
    show_generator(coordinator, settings)
elif menu == "Settings":
    show_settings(coordinator, settings)
