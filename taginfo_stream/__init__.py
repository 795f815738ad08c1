"""taginfo_stream: the exiftool tag catalog as a streamed JSON API.

WHY: `exiftool -listx` describes every tag exiftool supports as one large
XML document. Web clients want it as JSON, and neither side should have to
hold the whole catalog in memory.

HOW: Four small stages per request: run the tool (core.bridge), scan its
XML one table at a time (core.scanner), flatten tags into records
(core.projector), and frame them as a JSON array (core.emitter). They are wired
together by server.streaming behind a FastAPI app.

RULES:
- Each request owns its own tool process and pipe
- The JSON array is always closed unless the client has gone away
"""

__version__ = "0.1.0"
