from create_dataverse_app.cli import main

main()
