from viewexport.cli import main

main()
