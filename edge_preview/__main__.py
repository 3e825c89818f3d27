from edge_preview.cli.main import main

main()
