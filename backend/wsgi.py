from slms import create_app

app = create_app()
