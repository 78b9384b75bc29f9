# src/skillgraph/ui/gradio_app.py
from __future__ import annotations
import logging
import time
from html import escape as _esc
from typing import List, Optional

import gradio as gr
import markdown as _md
import bleach

from skillgraph.utils.config import settings, configure_logging
from skillgraph.storage.db import init_db
from skillgraph.skills.query import GraphStore
from skillgraph.skills.models import SearchFilters, SearchResult, RequiredSkillCandidate, TeamResult
from skillgraph.skills.persist import seed_demo_directory
from skillgraph.retrieval.embeddings import EmbeddingConfig, get_embedding_provider
from skillgraph.retrieval.indexing import embed_missing_skills, embed_missing_employees
from skillgraph.matching.engine import MatchingEngine
from skillgraph.matching.team import build_team
from skillgraph.assistant.chat import SkillAssistant, extract_team_skills
from skillgraph.viz.canvas import PillowCanvas
from skillgraph.viz.view import GraphView

logger = logging.getLogger(__name__)

CANVAS_W, CANVAS_H = 800, 600
ANY = "Any"

_ALLOWED_TAGS = bleach.sanitizer.ALLOWED_TAGS.union({
    "p","pre","code","blockquote","hr","br",
    "h1","h2","h3","h4","ul","ol","li","em","strong","a","span","div"
})
_ALLOWED_ATTRS = {
    **bleach.sanitizer.ALLOWED_ATTRIBUTES,
    "a": ["href","title","target","rel"],
    "span": ["class"],
    "div": ["class"],
}

_CARD_CSS = """
<style>
.ccard{margin:10px 0;border:1px solid #333;border-radius:12px;padding:12px;background:#0f1115}
.chead{display:flex;justify-content:space-between;align-items:center}
.cname{font-weight:600;font-size:15px}
.cscore{font-size:20px;font-weight:700;color:#818cf8}
.csub{font-size:12px;opacity:.8}
.chip{display:inline-block;padding:2px 8px;margin:2px;border-radius:999px;border:1px solid #444;font-size:12px}
.msg{margin:8px 0;padding:8px 12px;border-radius:10px}
.msg.user{background:#1e293b}
.msg.assistant{background:#111827;border:1px solid #333}
</style>
"""

# ---------- helpers ----------
def _md_to_html(text: str) -> str:
    html = _md.markdown(text or "", extensions=["fenced_code", "tables"])
    return bleach.clean(html, tags=_ALLOWED_TAGS, attributes=_ALLOWED_ATTRS, strip=True)

def _pct(x: float) -> str:
    return f"{round(x * 100)}%"

def _render_search_html(result: SearchResult) -> str:
    if not result.candidates:
        return "<em>No matching candidates. Try different wording or fewer filters.</em>"
    parts = [_CARD_CSS, f"<div class='csub'>{result.total_matches} match(es) in {result.processing_time_ms:.0f} ms</div>"]
    for i, c in enumerate(result.candidates, 1):
        chips = "".join(
            f"<span class='chip'>{_esc(m.skill.name)} · {m.proficiency}/5 · {_pct(m.relevance)}</span>"
            for m in c.matched_skills
        )
        parts.append(
            "<div class='ccard'>"
            f"<div class='chead'><div><div class='cname'>{i}. {_esc(c.employee.name)}</div>"
            f"<div class='csub'>{_esc(c.employee.role)} · {_esc(c.employee.department)}</div></div>"
            f"<div class='cscore'>{_pct(c.match_score)}</div></div>"
            f"<div class='csub'>graph {_pct(c.graph_score)} · semantic {_pct(c.semantic_score)}</div>"
            f"<div>{chips}</div></div>"
        )
    return "\n".join(parts)

def _render_required_html(cands: List[RequiredSkillCandidate], skill_names: dict) -> str:
    if not cands:
        return "<em>Nobody holds the selected skills.</em>"
    parts = [_CARD_CSS]
    for i, c in enumerate(cands, 1):
        chips = "".join(f"<span class='chip'>{_esc(skill_names.get(s, s))}</span>" for s in c.matched_skill_ids)
        parts.append(
            "<div class='ccard'>"
            f"<div class='chead'><div><div class='cname'>{i}. {_esc(c.employee.name)}</div>"
            f"<div class='csub'>{_esc(c.employee.role)} · {_esc(c.employee.department)}</div></div>"
            f"<div class='cscore'>{_pct(c.match_score)}</div></div>"
            f"<div class='csub'>{c.matched_count} matched · total proficiency {c.total_proficiency}</div>"
            f"<div>{chips}</div></div>"
        )
    return "\n".join(parts)

def _render_chat_html(history: List[dict]) -> str:
    if not history:
        return "<em>Ask me to find someone, e.g. “who knows Python and machine learning?”</em>"
    parts = [_CARD_CSS]
    for h in history:
        role = "user" if h["role"] == "user" else "assistant"
        parts.append(f"<div class='msg {role}'>{_md_to_html(h['content'])}</div>")
    return "\n".join(parts)

def _team_rows(result: TeamResult):
    return [
        [m.name, m.role, m.department, ", ".join(m.skills),
         _pct(m.skill_coverage), _pct(m.compatibility_score), round(m.total_score, 3)]
        for m in result.team
    ]

def _selected_md(view: Optional[GraphView]) -> str:
    if view is None or view.loading:
        return "_Loading knowledge graph…_"
    info = view.selected_info()
    if not info:
        return "_Click a node to select it; click again elsewhere to drop it there._"
    lines = [f"### {info['label']}", f"**Type:** {info['kind']}", f"**Connections:** {info['connections']}"]
    for k, v in info["data"].items():
        if v:
            lines.append(f"**{k.title()}:** {', '.join(v) if isinstance(v, list) else v}")
    return "\n\n".join(lines)

def _snapshot(view: GraphView):
    canvas = PillowCanvas(view.width, view.height)
    view.render(canvas)
    return canvas.to_image()


# ---------- UI ----------
def build_ui():
    init_db()
    store = GraphStore()
    embedder = get_embedding_provider(EmbeddingConfig.from_settings())
    engine = MatchingEngine(store, embedder)
    assistant = SkillAssistant(store, engine)

    def _skill_choices():
        return [(s.name, s.id) for s in store.skills()]

    # ---------------- search ----------------
    def on_search(query, department, min_prof, certified, limit):
        if not (query or "").strip():
            return "<em>Describe who you are looking for.</em>"
        filters = SearchFilters(
            department=None if department in (None, "", ANY) else department,
            min_proficiency=int(min_prof) if min_prof and int(min_prof) > 0 else None,
            certified=True if certified else None,
        )
        return _render_search_html(engine.search(query, filters, limit=int(limit or 10)))

    def on_required(skill_ids, min_prof):
        try:
            names = {s.id: s.name for s in store.skills()}
            cands = engine.candidates_for_required_skills(skill_ids or [], min_proficiency=int(min_prof or 1))
            return _render_required_html(cands, names)
        except Exception as e:
            return f"<em>Lookup failed: {_esc(str(e))}</em>"

    def on_project(project_id):
        if not project_id:
            return "<em>Pick a project.</em>"
        names = {s.id: s.name for s in store.skills()}
        return _render_required_html(engine.candidates_for_project(project_id), names)

    # ---------------- assistant ----------------
    def on_chat(message, history):
        history = list(history or [])
        if not (message or "").strip():
            return _render_chat_html(history), history, ""
        reply = assistant.reply(message, history)
        history += [{"role": "user", "content": message}, {"role": "assistant", "content": reply.message}]
        return _render_chat_html(history), history, ""

    # ---------------- team ----------------
    def on_team(prompt, skill_ids, team_size):
        names = [s.name for s in store.skills() if s.id in set(skill_ids or [])]
        try:
            if not names and (prompt or "").strip():
                names = extract_team_skills(prompt)
            result = build_team(store, names, team_size=int(team_size or 5))
        except Exception as e:
            logger.error("team builder failed: %s: %s", type(e).__name__, e)
            return [], f"**Error:** could not build a team ({type(e).__name__})."
        summary = result.explanation
        if result.required_skills:
            summary += f"\n\n**Requested:** {', '.join(result.required_skills)}"
        return _team_rows(result), summary

    # ---------------- directory ----------------
    def on_directory():
        emps = [[e.name, e.role, e.department, e.email, ", ".join(f"{x.skill.name} ({x.proficiency})" for x in store.skills_of(e.id))]
                for e in store.employees()]
        skills = [[s.name, s.category, ", ".join(s.tags), len(store.holders_of(s.id))] for s in store.skills()]
        return emps, skills

    def on_seed():
        try:
            counts = seed_demo_directory()
            n_sk = embed_missing_skills(embedder)
            n_emp = embed_missing_employees(embedder)
        except Exception as e:
            return f"**Seeding failed:** {type(e).__name__}: {e}"
        return f"Seeded {counts}. Embedded {n_sk} skills and {n_emp} employees with {embedder.name}."

    def on_embed(force):
        try:
            n_sk = embed_missing_skills(embedder, force=bool(force))
            n_emp = embed_missing_employees(embedder, force=bool(force))
        except Exception as e:
            return f"**Embedding failed:** {type(e).__name__}: {e}"
        return f"Embedded {n_sk} skills and {n_emp} employees with {embedder.name}."

    def on_choices():
        deps = [ANY] + store.departments()
        projects = [(p.name, p.id) for p in store.projects()]
        sk = _skill_choices()
        return (gr.update(choices=deps, value=ANY), gr.update(choices=sk),
                gr.update(choices=sk), gr.update(choices=projects))

    # ---------------- knowledge graph ----------------
    def on_graph_load(view):
        view = view or GraphView(CANVAS_W, CANVAS_H)
        view.load(store)
        return view, _snapshot(view), _selected_md(view)

    def on_graph_tick(view):
        if view is None:
            return gr.update(), view
        canvas = PillowCanvas(view.width, view.height)
        if not view.frame(time.monotonic() * 1000.0, canvas):
            return gr.update(), view
        return canvas.to_image(), view

    def on_graph_click(view, evt: gr.SelectData):
        if view is None or not evt.index:
            return gr.update(), "", view
        x, y = evt.index[0], evt.index[1]
        view.click(float(x), float(y))
        return _snapshot(view), _selected_md(view), view

    def _graph_action(action):
        def _fn(view):
            if view is None:
                return gr.update(), view
            action(view)
            return _snapshot(view), view
        return _fn

    with gr.Blocks(title="Skill Graph") as demo:
        gr.Markdown("## Skill Graph: find people by what they know")

        with gr.Tab("Search"):
            with gr.Row():
                query_in = gr.Textbox(label="Who do you need?", placeholder="e.g. someone with Python and machine learning", scale=4)
                search_btn = gr.Button("Search", variant="primary", scale=1)
            with gr.Row():
                dept_dd = gr.Dropdown(choices=[ANY], value=ANY, label="Department")
                minp_in = gr.Slider(0, 5, value=0, step=1, label="Min proficiency (0 = any)")
                cert_in = gr.Checkbox(label="Certified only")
                limit_in = gr.Slider(1, 50, value=10, step=1, label="Max results")
            search_html = gr.HTML()
            with gr.Accordion("By explicit skills / project", open=False):
                with gr.Row():
                    req_dd = gr.Dropdown(choices=[], multiselect=True, label="Required skills")
                    req_min = gr.Slider(1, 5, value=1, step=1, label="Min proficiency")
                    req_btn = gr.Button("Find")
                with gr.Row():
                    proj_dd = gr.Dropdown(choices=[], label="Project")
                    proj_btn = gr.Button("Staff project")
                req_html = gr.HTML()

        with gr.Tab("Assistant"):
            chat_state = gr.State(value=[])
            chat_html = gr.HTML(_render_chat_html([]))
            with gr.Row():
                chat_in = gr.Textbox(label="Message", scale=4)
                chat_btn = gr.Button("Send", variant="primary", scale=1)

        with gr.Tab("Team Builder"):
            team_prompt = gr.Textbox(label="Describe the project", lines=3,
                                     placeholder="e.g. ML recommendation engine with a React frontend")
            with gr.Row():
                team_skills = gr.Dropdown(choices=[], multiselect=True, label="…or pick skills")
                team_size = gr.Slider(1, 10, value=5, step=1, label="Team size")
                team_btn = gr.Button("Build team", variant="primary")
            team_md = gr.Markdown("")
            team_df = gr.Dataframe(
                headers=["Name", "Role", "Department", "Skills", "Coverage", "Compatibility", "Score"],
                interactive=False,
            )

        with gr.Tab("Directory"):
            with gr.Row():
                seed_btn = gr.Button("Seed demo data")
                force_in = gr.Checkbox(label="Re-embed everything")
                embed_btn = gr.Button("Generate embeddings")
                refresh_btn = gr.Button("Refresh")
            dir_status = gr.Markdown("")
            emp_df = gr.Dataframe(headers=["Name", "Role", "Department", "Email", "Skills"], interactive=False)
            skill_df = gr.Dataframe(headers=["Skill", "Category", "Tags", "Holders"], interactive=False)

        with gr.Tab("Knowledge Graph"):
            graph_state = gr.State(value=None)
            with gr.Row():
                with gr.Column(scale=4):
                    graph_img = gr.Image(type="pil", interactive=False, show_label=False,
                                         width=CANVAS_W, height=CANVAS_H)
                with gr.Column(scale=1):
                    reload_btn = gr.Button("Reload graph")
                    with gr.Row():
                        zin_btn = gr.Button("Zoom in")
                        zout_btn = gr.Button("Zoom out")
                    reset_btn = gr.Button("Reset view")
                    sim_btn = gr.Button("Pause / resume")
                    node_md = gr.Markdown(_selected_md(None))
            timer = gr.Timer(0.05)

        # ---------------- wiring ----------------
        demo.load(on_choices, outputs=[dept_dd, req_dd, team_skills, proj_dd])
        demo.load(on_directory, outputs=[emp_df, skill_df])
        demo.load(on_graph_load, inputs=graph_state, outputs=[graph_state, graph_img, node_md])

        search_btn.click(on_search, inputs=[query_in, dept_dd, minp_in, cert_in, limit_in], outputs=search_html)
        query_in.submit(on_search, inputs=[query_in, dept_dd, minp_in, cert_in, limit_in], outputs=search_html)
        req_btn.click(on_required, inputs=[req_dd, req_min], outputs=req_html)
        proj_btn.click(on_project, inputs=proj_dd, outputs=req_html)

        chat_btn.click(on_chat, inputs=[chat_in, chat_state], outputs=[chat_html, chat_state, chat_in])
        chat_in.submit(on_chat, inputs=[chat_in, chat_state], outputs=[chat_html, chat_state, chat_in])

        team_btn.click(on_team, inputs=[team_prompt, team_skills, team_size], outputs=[team_df, team_md])

        seed_btn.click(on_seed, outputs=dir_status).then(
            on_directory, outputs=[emp_df, skill_df]
        ).then(
            on_choices, outputs=[dept_dd, req_dd, team_skills, proj_dd]
        ).then(
            on_graph_load, inputs=graph_state, outputs=[graph_state, graph_img, node_md]
        )
        embed_btn.click(on_embed, inputs=force_in, outputs=dir_status)
        refresh_btn.click(on_directory, outputs=[emp_df, skill_df])

        reload_btn.click(on_graph_load, inputs=graph_state, outputs=[graph_state, graph_img, node_md])
        zin_btn.click(_graph_action(GraphView.zoom_in), inputs=graph_state, outputs=[graph_img, graph_state])
        zout_btn.click(_graph_action(GraphView.zoom_out), inputs=graph_state, outputs=[graph_img, graph_state])
        reset_btn.click(_graph_action(GraphView.reset_view), inputs=graph_state, outputs=[graph_img, graph_state])
        sim_btn.click(_graph_action(GraphView.toggle_simulation), inputs=graph_state, outputs=[graph_img, graph_state])
        graph_img.select(on_graph_click, inputs=graph_state, outputs=[graph_img, node_md, graph_state])
        timer.tick(on_graph_tick, inputs=graph_state, outputs=[graph_img, graph_state], show_progress="hidden")

    return demo

def main():
    configure_logging()
    print(f"[cfg] model={settings.OPENAI_MODEL}, key_prefix={str(settings.OPENAI_API_KEY)[:6]}…")
    print(f"[cfg] DB={settings.DB_URL}")
    print(f"[cfg] embeddings={settings.EMBEDDING_BINDING}")
    init_db()
    demo = build_ui()
    demo.queue(default_concurrency_limit=2).launch()

if __name__ == "__main__":
    main()
