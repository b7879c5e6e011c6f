import sys
import os

# Ensure project root is on sys.path so `import rfs_client` resolves when Streamlit runs
# (Streamlit runs the script from its directory which can make package imports fail)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from datetime import datetime
import logging

from rfs_client.core import ClientCommandHandler, FileServiceConnection, Parser, ProtocolError
from rfs_client.ui.levenstein import COMMANDS, get_suggestion

import streamlit as st

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


st.set_page_config(page_title="rfs Client UI", layout="wide")

# --- Helpers -----------------------------------------------------------------

def run_command(handler: ClientCommandHandler, line: str, body: str):
    """Route one console line to the matching handler method."""
    verb, _, argument = line.partition(" ")
    if verb == "LIST":
        return handler.list(argument)
    if verb == "READ":
        return handler.read(argument)
    if verb == "WRITE":
        return handler.write(argument, body)
    if verb == "CREATE_DIR":
        return handler.create_dir(argument)
    if verb in ("COPY", "MOVE"):
        parts = argument.split()
        if len(parts) != 2:
            # let the server produce the argument-count error
            return handler.raw(line)
        return handler.copy(*parts) if verb == "COPY" else handler.move(*parts)
    return handler.raw(line)


def disconnect():
    conn = st.session_state.get("conn")
    if conn:
        conn.disconnect()
    st.session_state["conn"] = None
    st.session_state["handler"] = None


# --- UI ----------------------------------------------------------------------
st.title("rfs - Streamlit Client")

with st.sidebar:
    st.header("Connection")
    host = st.text_input("Host", value="127.0.0.1")
    port = st.number_input("Port", min_value=1, max_value=65535, value=6789)
    timeout = st.number_input("Timeout (s)", min_value=1.0, max_value=60.0, value=10.0)
    escaped = st.checkbox("Escaped framing", value=True)
    if st.button("Connect"):
        disconnect()
        conn = FileServiceConnection(host, int(port), float(timeout), escaped=escaped)
        try:
            conn.connect()
            st.session_state["conn"] = conn
            st.session_state["handler"] = ClientCommandHandler(conn, Parser())
            logger.info(f"[UI] Connected to {host}:{port}")
            st.success(f"Connected to {host}:{port}")
        except ConnectionError as e:
            logger.error(f"[UI] Connection failed: {e}")
            st.error(f"Connection failed: {e}")
    if st.button("Disconnect"):
        disconnect()
        st.info("Disconnected")


if "handler" not in st.session_state:
    st.session_state["handler"] = None

col1, col2 = st.columns([3, 1])

with col1:
    st.subheader("Terminal")
    cmd = st.text_input("Command", placeholder="e.g. LIST /tmp", key="cmd_input")
    body = st.text_area("WRITE body", placeholder="Lines appended to the file by WRITE", key="write_body")
    cmd_run = st.button("Run")

    if cmd_run and cmd:
        handler: ClientCommandHandler = st.session_state.get("handler")
        verb = cmd.split(" ", 1)[0]
        if not handler:
            st.error("Not connected. Connect first.")
        elif verb not in COMMANDS:
            st.error(f"Unknown command: {verb}")
            suggestion = get_suggestion(verb)
            if suggestion:
                st.write(f"Try with {suggestion}")
        else:
            try:
                with st.spinner("Running..."):
                    parsed = run_command(handler, cmd, body)
                if parsed.lines:
                    st.text_area("Output", value="\n".join(parsed.lines), height=300)
                if parsed.ok:
                    st.success(parsed.message or f"{verb} OK")
                else:
                    st.error(parsed.message)
            except (ProtocolError, OSError) as e:
                logger.error(f"[UI] Connection lost: {e}")
                disconnect()
                st.error(f"Connection lost: {e}")

with col2:
    st.subheader("History")
    handler: ClientCommandHandler = st.session_state.get("handler")
    if handler is None:
        st.info("No history: not connected")
    else:
        if st.button("Clear History"):
            handler.clear_history()
            st.rerun()
        for entry in reversed(handler.get_history()[-100:]):
            t = entry.get("time")
            time_str = t.isoformat() if isinstance(t, datetime) else str(t)
            with st.expander(f"{time_str} - {entry.get('command')}"):
                parsed = entry.get("parsed")
                st.write(f"Message: {parsed.message}")
                st.write(f"Lines: {len(parsed.lines)}")
                if entry.get("error"):
                    st.error("This entry had an error")


st.markdown("---")
st.caption("rfs Streamlit UI - LIST, READ, WRITE, CREATE_DIR, COPY, MOVE.")
