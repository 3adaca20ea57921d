# capgraph/render/inline_css.py
from __future__ import annotations

CSS_BLOCK = r'''
:root {
    --bg: #0a131d;
    --panel: #0f1b2a;
    --text: #e7eff8;
    --muted: #9ab0c5;
    --line: #29435d;
    --radius: 12px;

    --cpd-rgb: 102,204,255;
    --ccd-rgb: 153,255,153;
    --warn: #ffb86a;
    --bad: #ff6678;
}
* { box-sizing: border-box; }
body { margin: 0; background: var(--bg); color: var(--text); font: 13px/1.45 system-ui, sans-serif; }
header { display: flex; justify-content: space-between; align-items: center; padding: 12px 18px; border-bottom: 1px solid var(--line); }
.title { font-weight: 700; font-size: 16px; letter-spacing: 0.04em; }
.subtitle, .meta { color: var(--muted); font-size: 11px; }
.layout { display: grid; grid-template-columns: 1fr 380px; height: calc(100vh - 58px); }
.graph-wrap { position: relative; }
#graph { width: 100%; height: 100%; display: block; }
.legend { position: absolute; left: 12px; bottom: 12px; display: flex; gap: 10px; color: var(--muted); font-size: 11px; }
.lg-cpd { color: rgba(var(--cpd-rgb), 0.9); }
.lg-ccd { color: rgba(var(--ccd-rgb), 0.9); }
.lg-insp { border-bottom: 1px dashed var(--muted); }
.panel { overflow-y: auto; padding: 12px; border-left: 1px solid var(--line); background: var(--panel); }
.card { margin-bottom: 12px; padding: 12px; border: 1px solid var(--line); border-radius: var(--radius); }
.hidden { display: none; }
.card h3 { margin: 0 0 8px; font-size: 13px; }
.bar { height: 6px; background: rgba(255,255,255,0.1); border-radius: 3px; overflow: hidden; margin: 6px 0 10px; }
.bar > div { height: 100%; background: rgba(var(--cpd-rgb), 0.8); }
.task { padding: 6px 8px; border: 1px solid var(--line); border-radius: 8px; margin-bottom: 6px; font-size: 11px; }
.task.done { opacity: 0.6; text-decoration: line-through; }
.task .age { float: right; color: var(--muted); }
.streak { margin-top: 8px; color: var(--warn); font-weight: 700; }
ul.findings { margin: 0; padding-left: 18px; }
ul.findings li { margin-bottom: 4px; }
li.error { color: var(--bad); }
li.warning { color: var(--warn); }
li.acked { opacity: 0.55; }
.ack { color: var(--muted); font-size: 10px; }
.kv { display: grid; grid-template-columns: 1fr 1fr; gap: 4px 10px; }
.kv .k { color: var(--muted); }
.statusNone { color: var(--bad); }
.statusTbd { color: var(--warn); }
.statusNa { color: var(--muted); font-style: italic; }
svg text { pointer-events: none; }
g.node { cursor: pointer; }
.noscript { padding: 12px 16px; color: var(--warn); }
'''
