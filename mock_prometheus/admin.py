"""
Admin control panel.

A single page that lists the scenarios and drives the scenario API from the
browser: switch scenario, reset the timer, and watch the live values.
"""

ADMIN_HTML = """
<html>
    <head>
        <title>Mock Prometheus - Scenario Control</title>
        <style>
            body { font-family: sans-serif; margin: 2em; }
            button { margin: 0.25em; padding: 0.5em 1em; }
            .active { font-weight: bold; background: #cde; }
            pre { background: #f4f4f4; padding: 1em; }
        </style>
    </head>
    <body>
        <h1>Mock Prometheus</h1>
        <div id="scenarios"></div>
        <button onclick="resetTimer()">Reset timer</button>
        <h2>Current status</h2>
        <pre id="status">loading...</pre>
        <script>
            let current = null;

            async function loadScenarios() {
                const response = await fetch('/api/v1/scenarios');
                const body = await response.json();
                const container = document.getElementById('scenarios');
                container.innerHTML = '';
                for (const s of body.data) {
                    const button = document.createElement('button');
                    button.textContent = s.type;
                    button.title = s.description;
                    if (s.type === current) button.className = 'active';
                    button.onclick = () => setScenario(s.type);
                    container.appendChild(button);
                }
            }

            function showStatus(body) {
                current = body.data.type;
                document.getElementById('status').textContent = JSON.stringify(body.data, null, 2);
            }

            async function refresh() {
                const response = await fetch('/api/v1/scenario');
                showStatus(await response.json());
                await loadScenarios();
            }

            async function setScenario(name) {
                const response = await fetch('/api/v1/scenario', {
                    method: 'POST',
                    headers: {'Content-Type': 'application/json'},
                    body: JSON.stringify({scenario: name}),
                });
                showStatus(await response.json());
                await loadScenarios();
            }

            async function resetTimer() {
                const response = await fetch('/api/v1/scenario/reset', {method: 'POST'});
                showStatus(await response.json());
            }

            refresh();
            setInterval(refresh, 5000);
        </script>
    </body>
</html>
"""
