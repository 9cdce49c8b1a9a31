# app/ui/login.py

import os
import json
import streamlit as st
from dotenv import load_dotenv
from streamlit_cookies_manager import EncryptedCookieManager
from services.api import login_user, register_user

load_dotenv()

COOKIE_PASSWORD = os.getenv("COOKIE_PASSWORD")

cookies = EncryptedCookieManager(prefix="sweet-shop/", password=COOKIE_PASSWORD)
if not cookies.ready():
    st.stop()


def store_session(token, user):
    st.session_state["access_token"] = token
    st.session_state["user"] = user
    cookies["access_token"] = token
    cookies["user"] = json.dumps(user)
    cookies.save()


def logout():
    for key in ("access_token", "user"):
        if key in cookies:
            del cookies[key]
    cookies.save()


def login_page():
    if "access_token" not in st.session_state:
        if cookies.get("access_token") and cookies.get("user"):
            st.session_state["access_token"] = cookies["access_token"]
            st.session_state["user"] = json.loads(cookies["user"])
            st.rerun()

    if "show_register" not in st.session_state:
        st.session_state["show_register"] = False

    if st.session_state["show_register"]:
        show_register_form()
    else:
        show_login_form()


def show_login_form():
    st.title("🍬 Sweet Shop")
    st.subheader("Sign in")

    with st.form("login_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in")

    if submitted:
        if not email or not password:
            st.error("Email and password are required")
        else:
            with st.spinner("Signing in..."):
                result = login_user(email, password)
            if result.get("error"):
                st.error(f"❌ Login failed: {result['error']}")
            else:
                store_session(result["token"], result["user"])
                st.success("✅ Logged in")
                st.rerun()

    if st.button("Don't have an account? Register"):
        st.session_state["show_register"] = True
        st.rerun()


def show_register_form():
    st.title("🍬 Sweet Shop")
    st.subheader("📝 Create an account")

    with st.form("register_form"):
        username = st.text_input("Username")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Register")

    if submitted:
        if len(username.strip()) < 3:
            st.error("Username must be at least 3 characters")
        elif password != confirm:
            st.error("Passwords do not match")
        elif len(password) < 6:
            st.error("Password must be at least 6 characters")
        else:
            with st.spinner("Creating account..."):
                result = register_user(username.strip(), email, password)
            if result.get("error"):
                st.error(f"❌ Registration failed: {result['error']}")
            else:
                store_session(result["token"], result["user"])
                st.session_state["show_register"] = False
                st.success("🎉 Account created!")
                st.rerun()

    if st.button("← Back to sign in"):
        st.session_state["show_register"] = False
        st.rerun()
