from insightful.cli import app

app(prog_name="insightful")
