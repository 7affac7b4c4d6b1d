"""
frontend/app.py
═══════════════
LinguaMatch — Practice Partner Finder  |  Streamlit UI
Run: streamlit run frontend/app.py

Dependencies
────────────
  pip install streamlit plotly requests
"""
from __future__ import annotations

import os

import plotly.graph_objects as go
import requests
import streamlit as st

# ─────────────────────────────────────────────────────────────────────────────
#  Config
# ─────────────────────────────────────────────────────────────────────────────
API = os.environ.get("LINGUAMATCH_API", "http://localhost:8000")

st.set_page_config(
    page_title="LinguaMatch · Find Practice Partners",
    page_icon="🗣️",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    """
    <style>
    @import url('https://fonts.googleapis.com/css2?family=Inter:wght@300;400;600;700&display=swap');
    html, body, [class*="css"] { font-family: 'Inter', sans-serif !important; }

    .match-card {
        background: linear-gradient(160deg, #1a1f2e 0%, #141826 100%);
        border: 1px solid #2a2f3e;
        border-radius: 18px;
        padding: 22px 28px;
        box-shadow: 0 8px 40px rgba(0,0,0,.45);
    }
    .tier { display:inline-block; padding:3px 14px; border-radius:20px;
            font-weight:700; font-size:.85em; border:1px solid; }
    .reason-chip { display:inline-block; background:rgba(255,255,255,.05);
                   border:1px solid rgba(255,255,255,.1); border-radius:6px;
                   padding:3px 10px; margin:2px; font-size:.78em; color:#aaa; }
    .slabel { font-size:.7em; letter-spacing:1.4px; text-transform:uppercase;
              color:#4d5468; margin-bottom:4px; }
    </style>
    """,
    unsafe_allow_html=True,
)

# ─────────────────────────────────────────────────────────────────────────────
#  Session state bootstrap
# ─────────────────────────────────────────────────────────────────────────────
_DEFAULTS = {
    "viewer_id": None,
    "matches":   [],
    "saved":     [],
}
for k, v in _DEFAULTS.items():
    if k not in st.session_state:
        st.session_state[k] = v

# ─────────────────────────────────────────────────────────────────────────────
#  API helpers
# ─────────────────────────────────────────────────────────────────────────────
def _api_ok() -> bool:
    try:
        return requests.get(f"{API}/health", timeout=3).status_code == 200
    except requests.RequestException:
        return False


def _fetch_learners() -> list[str]:
    try:
        r = requests.get(f"{API}/api/learners", params={"page_size": 100}, timeout=5)
        r.raise_for_status()
        return r.json().get("data", [])
    except requests.RequestException:
        return []


def _fetch_partners(viewer_id: str, limit: int) -> list[dict]:
    try:
        r = requests.get(
            f"{API}/api/matching/partners/{viewer_id}",
            params={"limit": limit},
            timeout=60,
        )
        if r.status_code == 404:
            st.warning(f"Learner {viewer_id} not found.")
            return []
        r.raise_for_status()
        return r.json().get("matches", [])
    except requests.RequestException as e:
        st.error(f"Could not fetch partners: {e}")
        return []


def _fetch_explanation(viewer_id: str, target_id: str) -> dict | None:
    try:
        r = requests.get(
            f"{API}/api/matching/explanation/{viewer_id}/{target_id}",
            timeout=30,
        )
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        st.error(f"Could not load explanation: {e}")
        return None


def _refresh(viewer_id: str) -> dict | None:
    try:
        r = requests.post(f"{API}/api/matching/refresh/{viewer_id}", timeout=60)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        return {"success": False, "message": str(e), "count": 0}

# ─────────────────────────────────────────────────────────────────────────────
#  Visualisation helpers
# ─────────────────────────────────────────────────────────────────────────────
DIMENSIONS = {
    "language_compatibility": ("Language",     "#c9a84c"),
    "availability_match":     ("Availability", "#7b9cc4"),
    "goals_alignment":        ("Goals",        "#6aaa84"),
    "experience_level":       ("Experience",   "#b07b6a"),
    "activity_level":         ("Activity",     "#8a7aaa"),
    "location_bonus":         ("Location",     "#788daa"),
}


def _breakdown_chart(breakdown: dict) -> go.Figure:
    """Horizontal bar chart of the six dimension scores."""
    keys   = [k for k in DIMENSIONS if k in breakdown]
    labels = [DIMENSIONS[k][0] for k in keys]
    values = [breakdown[k] for k in keys]
    colors = [DIMENSIONS[k][1] for k in keys]

    fig = go.Figure(go.Bar(
        x=values, y=labels,
        orientation="h",
        marker=dict(color=colors),
        text=values, textposition="outside",
    ))
    fig.update_layout(
        xaxis=dict(range=[0, 110], gridcolor="rgba(255,255,255,.07)",
                   tickfont=dict(color="#4d5468", size=9)),
        yaxis=dict(autorange="reversed", tickfont=dict(color="#8990a8", size=11)),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor ="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=10, b=10),
        showlegend=False,
        height=240,
    )
    return fig


def _tier_color(tier: str) -> str:
    return {
        "excellent": "#c9a84c", "great": "#8aaa6a",
        "good":      "#788daa", "fair":  "#aa7a6a",
    }.get(tier, "#888")

# ─────────────────────────────────────────────────────────────────────────────
#  Sidebar
# ─────────────────────────────────────────────────────────────────────────────
with st.sidebar:
    st.markdown(
        """
        <div style='text-align:center;padding:8px 0 14px'>
          <span style='font-size:2rem'>🗣️</span>
          <h2 style='margin:4px 0 0;color:#c9a84c;font-size:1.1rem'>LinguaMatch</h2>
          <p style='color:#4d5468;font-size:.75rem;margin:2px 0 0'>Practice partners · Explainable matching</p>
        </div>
        """,
        unsafe_allow_html=True,
    )

    api_live = _api_ok()
    if api_live:
        st.success("🟢 Backend Online")
    else:
        st.error("🔴 Backend Offline")
        st.caption("Start: `uvicorn backend.main:app --reload`")

    st.divider()

    st.markdown("### 👤 Select Learner")
    learner_ids = _fetch_learners() if api_live else []
    selected = st.selectbox("Learner ID", options=learner_ids or [""], index=0, key="viewer_picker")
    limit = st.slider("Partners to show", 1, 50, 10)

    if st.button("🔍 Find Partners", type="primary", use_container_width=True):
        st.session_state["viewer_id"] = selected
        with st.spinner("Scoring candidates…"):
            st.session_state["matches"] = _fetch_partners(selected, limit)
        if st.session_state["matches"]:
            st.toast(f"{len(st.session_state['matches'])} partners found", icon="🎯")

    if st.button("🔄 Refresh Matches", use_container_width=True):
        if st.session_state.get("viewer_id"):
            res = _refresh(st.session_state["viewer_id"])
            if res and res.get("success"):
                st.toast(f"{res['message']} ({res['count']})", icon="✅")
                st.session_state["matches"] = _fetch_partners(st.session_state["viewer_id"], limit)
            else:
                st.error(f"Refresh failed: {(res or {}).get('message', 'unknown')}")

    saved = st.session_state.get("saved", [])
    if saved:
        st.divider()
        st.markdown("### ⭐ Saved")
        for s in saved:
            st.markdown(
                f"<div class='reason-chip'>{s['id']}  <b style='color:#c9a84c'>{s['score']}</b></div>",
                unsafe_allow_html=True,
            )

# ─────────────────────────────────────────────────────────────────────────────
#  Main screen
# ─────────────────────────────────────────────────────────────────────────────
st.markdown(
    """
    <div style='padding:6px 0 18px'>
      <h1 style='font-size:2rem;margin:0;color:#c9a84c'>🗣️ Find Practice Partners</h1>
      <p style='color:#4d5468;margin:4px 0 0;font-size:.9em'>
        Language exchange matching · Six-dimension compatibility · Plain-language reasons
      </p>
    </div>
    """,
    unsafe_allow_html=True,
)

viewer_id = st.session_state.get("viewer_id")
matches   = st.session_state.get("matches", [])

if not viewer_id or not matches:
    st.markdown(
        """
        <div style='text-align:center;padding:80px 40px;background:rgba(255,255,255,.01);
                    border:1px dashed #2a2f3e;border-radius:18px;margin-top:20px'>
          <div style='font-size:3.5rem;margin-bottom:14px'>🗣️</div>
          <h3 style='color:#4d5468;font-weight:400'>No partners loaded yet</h3>
          <p style='color:#2a2f3e'>Select a learner and click <b style='color:#c9a84c'>Find Partners</b></p>
        </div>
        """,
        unsafe_allow_html=True,
    )
    st.stop()

for rank, m in enumerate(matches, start=1):
    cid   = m["candidate_id"]
    score = m["overall_score"]
    tier  = m["tier"]
    tc    = _tier_color(tier)
    name  = (m.get("user") or {}).get("display_name") or cid

    st.markdown(
        f"""
        <div class='match-card'>
          <div style='display:flex;justify-content:space-between;align-items:flex-start'>
            <div>
              <p class='slabel'>Partner #{rank}</p>
              <h2 style='margin:0 0 6px;font-size:1.4rem;color:#e2e5ef'>{name}</h2>
              <span class='tier' style='color:{tc};border-color:{tc}55;background:{tc}18'>
                ✦ {tier.title()} match
              </span>
            </div>
            <div style='text-align:center;width:80px;height:80px;border-radius:50%;
                        border:3px solid {tc};display:flex;flex-direction:column;
                        align-items:center;justify-content:center'>
              <span style='font-size:1.7rem;font-weight:700;color:{tc}'>{score}</span>
              <span style='font-size:.6rem;color:#4d5468'>/ 100</span>
            </div>
          </div>
          <div style='margin-top:10px'>
            {''.join(f"<span class='reason-chip'>{r}</span>" for r in m.get('reasons', []))}
          </div>
        </div>
        """,
        unsafe_allow_html=True,
    )

    col_chart, col_actions = st.columns([2, 1], gap="large")
    with col_chart:
        st.plotly_chart(
            _breakdown_chart(m["score_breakdown"]),
            use_container_width=True,
            key=f"chart_{cid}",
        )
    with col_actions:
        if st.button("⭐ Save", key=f"save_{cid}", use_container_width=True):
            if not any(s["id"] == cid for s in st.session_state["saved"]):
                st.session_state["saved"].append({"id": cid, "score": score})
            st.rerun()
        with st.expander("🔍 Why are we matched?"):
            detail = _fetch_explanation(viewer_id, cid)
            if detail:
                user = detail["user"]
                st.markdown(f"**{user.get('display_name') or user['id']}**")
                st.caption(
                    f"Speaks {', '.join(user['native_languages']) or '—'} · "
                    f"learning {', '.join(user['learning_languages']) or '—'}"
                    + (f" · {user['location']}" if user.get("location") else "")
                )
                for r in detail["reasons"]:
                    st.markdown(f"- {r}")

    st.markdown("<div style='height:14px'></div>", unsafe_allow_html=True)
