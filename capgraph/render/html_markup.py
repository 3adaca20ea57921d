# capgraph/render/html_markup.py
from __future__ import annotations

BODY_MARKUP = r"""<header>
  <div class="title-wrap">
    <div class="title">Capability Graph</div>
    <div class="subtitle">CPD / CCD governance view</div>
  </div>
  <div class="meta" id="meta"></div>
</header>
<main class="layout">
  <section class="graph-wrap">
    <svg id="graph" role="img" aria-label="Capability graph"></svg>
    <div class="legend">
      <span class="lg lg-cpd">CPD</span>
      <span class="lg lg-ccd">CCD</span>
      <span class="lg lg-uses">uses</span>
      <span class="lg lg-insp">inspired-by</span>
    </div>
  </section>
  <aside class="panel">
    <div class="card" id="routineDaily"></div>
    <div class="card" id="routineWeekly"></div>
    <div class="card" id="panelErrors"></div>
    <div class="card hidden" id="panelContent"></div>
    <div class="card panelEmpty" id="panelEmpty">Click a node to see its definition and status.</div>
  </aside>
</main>
"""
