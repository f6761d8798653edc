from floatingdots.cli import main

main()
