from suanha import create_app

app = create_app()
