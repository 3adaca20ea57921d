# capgraph/render/inline_js.py
from __future__ import annotations

JS_BLOCK = r'''
(() => {
  "use strict";

  const DATA = JSON.parse(document.getElementById("cg-data").textContent || "{}");
  const graph = DATA.graph || { nodes: [], links: [] };
  const NS = "http://www.w3.org/2000/svg";

  function esc(s) {
    return String(s ?? "")
      .replaceAll("&", "&amp;").replaceAll("<", "&lt;").replaceAll(">", "&gt;")
      .replaceAll('"', "&quot;").replaceAll("'", "&#039;");
  }

  function el(tag, attrs) {
    const e = document.createElementNS(NS, tag);
    for (const k in (attrs || {})) e.setAttribute(k, attrs[k]);
    return e;
  }

  // -----------------------------
  // Layout: small spring/repulsion relaxation (positions only)
  // -----------------------------
  function layout(nodes, links, w, h) {
    const pos = new Map();
    const n = nodes.length || 1;
    nodes.forEach((d, i) => {
      const a = (2 * Math.PI * i) / n;
      pos.set(d.id, { x: w / 2 + Math.cos(a) * w / 3, y: h / 2 + Math.sin(a) * h / 3 });
    });
    for (let it = 0; it < 300; it++) {
      const f = new Map(nodes.map(d => [d.id, { x: 0, y: 0 }]));
      for (let i = 0; i < nodes.length; i++) {
        for (let j = i + 1; j < nodes.length; j++) {
          const a = pos.get(nodes[i].id), b = pos.get(nodes[j].id);
          let dx = a.x - b.x, dy = a.y - b.y;
          const d2 = Math.max(dx * dx + dy * dy, 25);
          const k = 5200 / d2;
          const fa = f.get(nodes[i].id), fb = f.get(nodes[j].id);
          fa.x += dx * k / Math.sqrt(d2); fa.y += dy * k / Math.sqrt(d2);
          fb.x -= dx * k / Math.sqrt(d2); fb.y -= dy * k / Math.sqrt(d2);
        }
      }
      links.forEach(l => {
        const a = pos.get(l.source), b = pos.get(l.target);
        if (!a || !b) return;
        const dx = b.x - a.x, dy = b.y - a.y;
        const d = Math.max(Math.sqrt(dx * dx + dy * dy), 1);
        const k = (d - 95) * 0.05;
        f.get(l.source).x += dx / d * k; f.get(l.source).y += dy / d * k;
        f.get(l.target).x -= dx / d * k; f.get(l.target).y -= dy / d * k;
      });
      nodes.forEach(d => {
        const p = pos.get(d.id), fo = f.get(d.id);
        p.x += (w / 2 - p.x) * 0.01 + Math.max(-10, Math.min(10, fo.x));
        p.y += (h / 2 - p.y) * 0.01 + Math.max(-10, Math.min(10, fo.y));
        const r = d.type === "CPD" ? 31 : 27;
        p.x = Math.max(r, Math.min(w - r, p.x));
        p.y = Math.max(r, Math.min(h - r, p.y));
      });
    }
    return pos;
  }

  function drawGraph() {
    const svg = document.getElementById("graph");
    const w = svg.clientWidth || 800, h = svg.clientHeight || 600;
    svg.innerHTML = "";
    const pos = layout(graph.nodes, graph.links, w, h);

    graph.links.forEach(l => {
      const a = pos.get(l.source), b = pos.get(l.target);
      if (!a || !b) return;
      const line = el("line", { x1: a.x, y1: a.y, x2: b.x, y2: b.y, stroke: "rgba(230,233,242,0.25)", "stroke-width": 1.2 });
      if (l.type === "inspired-by") line.setAttribute("stroke-dasharray", "4 4");
      svg.appendChild(line);
      const t = el("text", { x: (a.x + b.x) / 2, y: (a.y + b.y) / 2, fill: "rgba(154,163,178,0.9)", "font-size": 11 });
      t.textContent = l.type;
      svg.appendChild(t);
    });

    graph.nodes.forEach(d => {
      const p = pos.get(d.id);
      const cpd = d.type === "CPD";
      const g = el("g", { class: "node", transform: `translate(${p.x},${p.y})` });
      g.appendChild(el("circle", {
        r: cpd ? 26 : 22,
        fill: cpd ? "rgba(102,204,255,0.15)" : "rgba(153,255,153,0.12)",
        stroke: cpd ? "rgba(102,204,255,0.6)" : "rgba(153,255,153,0.55)",
        "stroke-width": 1.6,
      }));
      const label = el("text", { "text-anchor": "middle", dy: 4, fill: "rgba(230,233,242,0.9)", "font-size": 11, "font-weight": 700 });
      label.textContent = d.type;
      g.appendChild(label);
      const title = el("title");
      title.textContent = d.name;
      g.appendChild(title);
      g.addEventListener("click", () => showNode(d));
      svg.appendChild(g);
    });
  }

  // -----------------------------
  // Panels
  // -----------------------------
  const KIND_CLASS = { none: "statusNone", tbd: "statusTbd", na: "statusNa" };

  function showNode(d) {
    const body = d.type === "CPD" ? (d.cpd || {}) : (d.ccd || {});
    const status = d.status || body.status || {};
    const kinds = (DATA.status_kinds || {})[d.id] || {};
    const fields = (DATA.fields || {})[d.type] || [];
    let html = `<h3>${esc(d.name)} <span class="meta">${esc(d.type)} · ${esc(d.id)}</span></h3>`;
    if (body.whatIs) html += `<p>${esc(body.whatIs)}</p>`;
    if (Array.isArray(body.whatIsNot) && body.whatIsNot.length) {
      html += `<ul>${body.whatIsNot.map(x => `<li>${esc(x)}</li>`).join("")}</ul>`;
    }
    if (body.neverImplicit) html += `<p class="meta">Never implicit: ${esc(body.neverImplicit)}</p>`;
    if (body.lifecycle || body.maturity) html += `<p class="meta">${esc(body.lifecycle || body.maturity)}</p>`;
    html += `<div class="kv">` + fields.map(f => {
      const v = status[f.key] ?? "NONE";
      const cls = KIND_CLASS[kinds[f.key]] || (f.key in status ? "" : "statusNone");
      return `<div class="k">${esc(f.label)}</div><div class="${cls}">${esc(v)}</div>`;
    }).join("") + `</div>`;

    const pc = document.getElementById("panelContent");
    pc.innerHTML = html;
    pc.classList.remove("hidden");
    document.getElementById("panelEmpty").classList.add("hidden");
  }

  function renderFindings() {
    const v = DATA.validation || { errors: [], warnings: [] };
    const box = document.getElementById("panelErrors");
    if (!v.errors.length && !v.warnings.length) {
      box.innerHTML = `<h3>Validation</h3><div class="meta">No errors or warnings.</div>`;
      return;
    }
    const li = (f, cls) => {
      const ack = f.ack ? `<div class="ack">acknowledged: ${esc(f.ack.reason || "(no reason)")}</div>` : "";
      return `<li class="${cls}${f.ack ? " acked" : ""}" title="${esc(f.hash)}">${esc(f.message)}${ack}</li>`;
    };
    box.innerHTML = `<h3>Validation</h3>`
      + (v.errors.length ? `<b>Errors (${v.errors.length})</b><ul class="findings">${v.errors.map(f => li(f, "error")).join("")}</ul>` : "")
      + (v.warnings.length ? `<b>Warnings (${v.warnings.length})</b><ul class="findings">${v.warnings.map(f => li(f, "warning")).join("")}</ul>` : "");
  }

  function renderRoutines() {
    const daily = DATA.daily || { tasks: [], completed: 0, total: 0, all: 0 };
    const pct = daily.total ? Math.round(daily.completed / daily.total * 100) : 0;
    const streaks = DATA.streaks || { daily: 0, weekly: 0 };
    let html = `<h3>Daily Status Review <span class="meta">${pct}% · ${daily.completed}/${daily.total}`
      + (daily.all > daily.total ? ` of ${daily.all}` : "") + `</span></h3>`
      + `<div class="bar"><div style="width:${pct}%"></div></div>`;
    html += daily.tasks.map(t => {
      const age = t.age === null ? "never" : `${t.age}d`;
      return `<div class="task${t.done ? " done" : ""}"><span class="age">${age}</span>${esc(t.text)}</div>`;
    }).join("");
    if (DATA.pick) {
      html += `<div class="meta">Suggested CPD: <b>${esc(DATA.pick.name)}</b>`
        + (DATA.pick.reasons.length ? ` (${esc(DATA.pick.reasons.join(", "))})` : "") + `</div>`;
    }
    if (streaks.daily > 0) html += `<div class="streak">Streak: ${streaks.daily} day${streaks.daily !== 1 ? "s" : ""}</div>`;
    document.getElementById("routineDaily").innerHTML = html;

    const vac = DATA.vacation || {};
    let wk = `<h3>Weekly <span class="meta">week of ${esc((DATA.meta || {}).week)}</span></h3>`;
    wk += (DATA.weekly || []).map(t => {
      const hint = (t.id === "W5" && vac.soon) ? ` <b>(vacation ${esc(vac.date)})</b>` : "";
      return `<div class="task${t.done ? " done" : ""}">${esc(t.id)} · ${esc(t.text)}${hint}</div>`;
    }).join("");
    if (streaks.weekly > 0) wk += `<div class="streak">Streak: ${streaks.weekly} week${streaks.weekly !== 1 ? "s" : ""}</div>`;
    document.getElementById("routineWeekly").innerHTML = wk;
  }

  const meta = DATA.meta || {};
  document.getElementById("meta").textContent =
    `${graph.nodes.length} nodes · ${graph.links.length} links · ${meta.today || ""}`;

  renderRoutines();
  renderFindings();
  drawGraph();
  window.addEventListener("resize", drawGraph);
})();
'''
