# Run from project root: streamlit run filechat/ui.py
# UI talks to the backend API (POST /upload, GET /upload, GET /chat). Only the latest upload is used for answers.

import os

import requests
import streamlit as st

# Backend config
API_BASE = os.environ.get("API_BASE", "http://localhost:5001")


def _error_detail(r: requests.Response) -> str:
    try:
        return r.json().get("detail") or r.text[:200]
    except ValueError:
        return r.text[:200]


st.title("Chat with a file")

# Current file (on every render)
try:
    r = requests.get(f"{API_BASE}/upload", timeout=10)
    if r.ok:
        current = r.json()
        st.caption(f"Answering from: {current.get('filename')} (upload #{current.get('version')})")
    elif r.status_code == 404:
        st.caption("No file uploaded yet. Upload one below.")
    else:
        st.caption("Could not load the current file.")
except requests.RequestException:
    st.caption("Backend not reachable. Start the API first.")

uploaded = st.file_uploader("Upload a file (replaces the current one)")

if st.button("Upload", key="upload_btn") and uploaded:
    try:
        uploaded.seek(0)
        r = requests.post(f"{API_BASE}/upload", files={"file": (uploaded.name, uploaded.read())}, timeout=60)
        if r.ok:
            st.success(f"Uploaded to {r.json().get('path')}")
            st.session_state.messages = []
            st.rerun()
        else:
            st.error(f"Upload failed: {r.status_code}: {_error_detail(r)}")
    except requests.RequestException as e:
        st.error(f"Upload failed: {e}")

st.divider()
st.subheader("Chat")

if "messages" not in st.session_state:
    st.session_state.messages = []

for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])

if prompt := st.chat_input("Ask a question about the uploaded file"):
    st.session_state.messages.append({"role": "user", "content": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)
    with st.chat_message("assistant"):
        with st.spinner("Thinking..."):
            try:
                r = requests.get(f"{API_BASE}/chat", params={"question": prompt}, timeout=90)
                if r.ok:
                    answer = r.text
                    st.markdown(answer)
                else:
                    answer = f"Error: {r.status_code}: {_error_detail(r)}"
                    st.error(answer)
            except requests.RequestException as e:
                answer = f"Connection failed: {e}"
                st.error(answer)
    st.session_state.messages.append({"role": "assistant", "content": answer})
