from machina.cli import main

main()
