from weathercache.cli.main import run

run()
