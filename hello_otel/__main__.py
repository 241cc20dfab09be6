from hello_otel.cli import app

app()
