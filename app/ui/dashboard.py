# app/ui/dashboard.py

import streamlit as st
from services.api import (
    list_sweets,
    search_sweets,
    create_sweet,
    update_sweet,
    delete_sweet,
    purchase_sweet,
    restock_sweet,
)
from ui.login import logout

SESSION_ERRORS = ("Invalid or expired token", "Authentication required")


def dashboard_page():
    st.title("🍬 Sweet Shop Inventory")

    token = st.session_state["access_token"]
    is_admin = st.session_state["user"].get("role") == "admin"

    handle_search()

    if is_admin:
        if st.button("➕ Add sweet"):
            st.session_state["show_add_form"] = not st.session_state.get("show_add_form", False)
        if st.session_state.get("show_add_form"):
            handle_sweet_form(token)

    filters = st.session_state.get("search_filters")
    if filters:
        sweets = search_sweets(token, **filters)
    else:
        sweets = list_sweets(token)

    if isinstance(sweets, dict) and sweets.get("error"):
        if sweets["error"] in SESSION_ERRORS:
            logout()
            st.session_state.clear()
            st.warning("Your session has expired, please sign in again.")
            st.rerun()
        st.error(sweets["error"])
        return

    if not sweets:
        st.info("No sweets found.")
        return

    for sweet in sweets:
        render_sweet(token, sweet, is_admin)


def handle_search():
    with st.expander("🔍 Search", expanded=bool(st.session_state.get("search_filters"))):
        with st.form("search_form"):
            cols = st.columns(4)
            name = cols[0].text_input("Name")
            category = cols[1].text_input("Category")
            min_price = cols[2].number_input("Min price", min_value=0.0, value=None, step=0.5)
            max_price = cols[3].number_input("Max price", min_value=0.0, value=None, step=0.5)
            submitted = st.form_submit_button("Search")

        if submitted:
            filters = {
                "name": name.strip() or None,
                "category": category.strip() or None,
                "min_price": min_price,
                "max_price": max_price,
            }
            st.session_state["search_filters"] = {k: v for k, v in filters.items() if v is not None}
            st.rerun()

        if st.session_state.get("search_filters") and st.button("Clear search"):
            st.session_state.pop("search_filters", None)
            st.rerun()


def handle_sweet_form(token, sweet=None):
    """
    Add form when sweet is None, edit form otherwise.
    """
    key = f"edit_{sweet['id']}" if sweet else "add"
    with st.form(f"sweet_form_{key}"):
        name = st.text_input("Name", value=sweet["name"] if sweet else "")
        category = st.text_input("Category", value=sweet["category"] if sweet else "")
        price = st.number_input("Price", min_value=0.0, step=0.5, value=float(sweet["price"]) if sweet else 0.0)
        quantity = st.number_input("Quantity", min_value=0, step=1, value=int(sweet["quantity"]) if sweet else 0)
        submitted = st.form_submit_button("Save" if sweet else "Add")

    if submitted:
        if not name.strip() or not category.strip():
            st.error("Name and category are required")
            return
        if sweet:
            result = update_sweet(token, sweet["id"], name.strip(), category.strip(), price, int(quantity))
        else:
            result = create_sweet(token, name.strip(), category.strip(), price, int(quantity))

        if result.get("error"):
            st.error(result["error"])
            return
        st.session_state.pop("show_add_form", None)
        st.session_state.pop("editing_id", None)
        st.success(result.get("message", "Saved"))
        st.rerun()


def render_sweet(token, sweet, is_admin):
    with st.container(border=True):
        col1, col2, col3 = st.columns([5, 2, 2])
        with col1:
            st.markdown(f"**{sweet['name']}**  \n_{sweet['category']}_")
        with col2:
            st.markdown(f"💲 {sweet['price']:.2f}")
            if sweet["in_stock"]:
                st.caption(f"In stock: {sweet['quantity']}")
            else:
                st.caption("Out of stock")
        with col3:
            if st.button("🛒 Purchase", key=f"buy_{sweet['id']}", disabled=not sweet["in_stock"]):
                result = purchase_sweet(token, sweet["id"])
                if result.get("error"):
                    st.error(result["error"])
                else:
                    st.success(f"Purchased {sweet['name']}")
                    st.rerun()

        if is_admin:
            handle_admin_actions(token, sweet)


def handle_admin_actions(token, sweet):
    col1, col2, col3, col4 = st.columns([2, 2, 3, 2])
    with col1:
        if st.button("✏️ Edit", key=f"edit_{sweet['id']}"):
            editing = st.session_state.get("editing_id")
            st.session_state["editing_id"] = None if editing == sweet["id"] else sweet["id"]
            st.rerun()
    with col2:
        if st.button("🗑️ Delete", key=f"delete_{sweet['id']}"):
            st.session_state["confirm_delete"] = sweet["id"]
    with col3:
        amount = st.number_input(
            "Restock amount", min_value=1, step=1, value=10,
            key=f"restock_amount_{sweet['id']}", label_visibility="collapsed",
        )
    with col4:
        if st.button("📦 Restock", key=f"restock_{sweet['id']}"):
            result = restock_sweet(token, sweet["id"], int(amount))
            if result.get("error"):
                st.error(result["error"])
            else:
                st.rerun()

    if st.session_state.get("confirm_delete") == sweet["id"]:
        st.warning(f"⚠️ Delete '{sweet['name']}'? This cannot be undone.")
        c1, c2 = st.columns(2)
        if c1.button("Yes, delete", key=f"confirm_delete_{sweet['id']}"):
            result = delete_sweet(token, sweet["id"])
            st.session_state.pop("confirm_delete", None)
            if result.get("error"):
                st.error(result["error"])
            else:
                st.rerun()
        if c2.button("Cancel", key=f"cancel_delete_{sweet['id']}"):
            st.session_state.pop("confirm_delete", None)
            st.rerun()

    if st.session_state.get("editing_id") == sweet["id"]:
        handle_sweet_form(token, sweet)
