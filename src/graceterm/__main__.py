from graceterm.cli.main import app

app(prog_name="graceterm")
