"""Minimal form-mcp example with a lifecycle hook. No API key needed."""

import asyncio

from form_mcp import FormTool, HookRegistry, Page, ToolHost, initialize

HTML = """
<html><head><title>Fly Cheap</title></head><body>
  <h2>Find a flight</h2>
  <form action="/search">
    <label for="origin">From</label> <input id="origin" name="origin" required>
    <label for="destination">To</label> <input id="destination" name="destination" required>
    <input type="number" name="passengers" min="1" max="9" value="1">
    <select name="cabin_class">
      <option value="economy">Economy</option>
      <option value="business">Business</option>
    </select>
    <button type="submit">Search Flights</button>
  </form>
</body></html>
"""


class PrintingHost(ToolHost):
    """Keeps tools in a dict and prints what it is given."""

    def __init__(self):
        self.tools: dict[str, FormTool] = {}

    async def register_tool(self, tool: FormTool) -> None:
        self.tools[tool.name] = tool
        print(f"register {tool.name}: {tool.description}")
        print(f"  schema: {tool.schema()}")

    async def unregister_tool(self, name: str) -> None:
        self.tools.pop(name, None)
        print(f"unregister {name}")


hooks = HookRegistry()


@hooks.on("form:registered")
async def on_registered(event):
    print(f"[hook] form #{event.form.get('id', '?')} is now tool '{event.tool_name}'")


async def main():
    host = PrintingHost()
    page = Page(HTML, url="https://flycheap.test/", model_context=host)

    handle = await initialize(page, {"auto_submit": True}, hooks=hooks)

    result = await host.tools["search_flights"].execute(
        origin="LIS", destination="NRT", passengers=2, cabin_class="business"
    )
    print(result.to_dict())

    await handle.destroy()


if __name__ == "__main__":
    asyncio.run(main())
