from media_converter.main import run

run()
