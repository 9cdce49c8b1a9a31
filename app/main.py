# app/main.py

import streamlit as st
from dotenv import load_dotenv

load_dotenv()

st.set_page_config(page_title="Sweet Shop", page_icon="🍬", layout="wide")

from ui.login import login_page, logout  # noqa: E402
from ui.dashboard import dashboard_page  # noqa: E402


def main_page():
    user = st.session_state["user"]

    st.sidebar.markdown(f"## 👋 Hello, {user['username']}!")
    if user.get("role") == "admin":
        st.sidebar.markdown("`ADMIN`")

    if st.sidebar.button("🔓 Logout"):
        logout()
        st.session_state.clear()
        st.rerun()

    dashboard_page()


if "access_token" not in st.session_state:
    login_page()
else:
    main_page()
