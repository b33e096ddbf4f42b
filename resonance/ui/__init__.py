"""Streamlit rendering for the admin and client portals."""
