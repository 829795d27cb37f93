from shortener.main import run

run()
